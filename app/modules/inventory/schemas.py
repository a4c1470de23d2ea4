from pydantic import BaseModel
from typing import List, Optional


class ApartadosMismatch(BaseModel):
    inventory_kind: str
    inventory_id: int
    product_name: Optional[str] = None
    quantity: int
    apartados: int
    expected_apartados: int


class ApartadosAudit(BaseModel):
    consistent: bool
    mismatches: List[ApartadosMismatch]
