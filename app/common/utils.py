"""
Generadores de identificadores internos y folios consecutivos
"""
import random
import string
import time
from datetime import datetime, timezone

from sqlalchemy.orm import Session


def generate_internal_id(prefix: str) -> str:
    """Genera un id interno tipo PREFIX-<timestamp ms>-<sufijo aleatorio>."""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def next_document_number(db: Session, column, prefix: str) -> str:
    """
    Siguiente folio consecutivo del año, ej. PED-2025-0007.

    Se basa en el mayor consecutivo numérico con el mismo prefijo y año (a partir
    de 9999 el folio crece a cinco dígitos y el orden de texto ya no sirve); la
    columna debe tener restricción UNIQUE para que una colisión concurrente falle
    en el commit.
    """
    year = datetime.now(timezone.utc).year
    base = f"{prefix}-{year}-"
    sequence = 0
    for (number,) in db.query(column).filter(column.like(f"{base}%")).all():
        suffix = number[len(base):]
        if suffix.isdigit():
            sequence = max(sequence, int(suffix))
    return f"{base}{sequence + 1:04d}"
