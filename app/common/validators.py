"""
Validadores compartidos entre módulos
"""
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status


CONCEPT_MAX_LENGTH = 255


def clean_optional_str(value: Optional[str]) -> Optional[str]:
    """Convierte cadenas vacías o de solo espacios en None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def signed_amount(amount: Decimal, entry_type: str) -> Decimal:
    """
    Normaliza el signo de un monto según el tipo de movimiento.
    Los egresos se guardan negativos y los ingresos positivos,
    sin importar el signo que envíe el cliente.
    """
    if amount == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El monto no puede ser cero"
        )
    absolute = abs(amount)
    return -absolute if entry_type == "expense" else absolute


def validate_limit(limit: int, maximum: int) -> int:
    if limit < 1 or limit > maximum:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"El límite debe estar entre 1 y {maximum}"
        )
    return limit


def validate_hex_color(value: Optional[str]) -> Optional[str]:
    value = clean_optional_str(value)
    if value is None:
        return None
    raw = value.lstrip("#")
    if len(raw) not in (3, 6) or any(c not in "0123456789abcdefABCDEF" for c in raw):
        raise ValueError("Código hexadecimal inválido. Use formato #RRGGBB")
    return f"#{raw.upper()}"
