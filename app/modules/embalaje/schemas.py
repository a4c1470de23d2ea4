from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class EmbalajeItem(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None


class EmbalajeAdjustItem(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0, description="Cantidad final exacta")
    notes: Optional[str] = None


class EmbalajeBatch(BaseModel):
    items: List[EmbalajeItem] = Field(..., min_length=1)


class EmbalajeAdjustBatch(BaseModel):
    items: List[EmbalajeAdjustItem] = Field(..., min_length=1)


class EmbalajeInventoryOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    tipo_name: Optional[str] = None
    quantity: int
    apartados: int
    vendidos: int
    disponibles: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmbalajeMovementOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    movement_type: str
    quantity: int
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmbalajeBatchResult(BaseModel):
    message: str
    inventory: List[EmbalajeInventoryOut]
