"""
Esquemas Pydantic para el módulo de Producción
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import List, Optional
from datetime import datetime

from app.common.validators import clean_optional_str, validate_hex_color
from app.modules.produccion.models import Stage, ProductCategory


# ===== CATÁLOGOS =====

class TipoCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre es requerido')
        return v


class TipoOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class SizeCreate(BaseModel):
    size_cm: Decimal = Field(..., gt=0)


class SizeOut(BaseModel):
    id: int
    size_cm: Decimal

    class Config:
        from_attributes = True


class CapacityCreate(BaseModel):
    capacity_ml: Decimal = Field(..., gt=0)


class CapacityOut(BaseModel):
    id: int
    capacity_ml: Decimal

    class Config:
        from_attributes = True


class EsmalteColorCreate(BaseModel):
    color: str = Field(..., min_length=1, max_length=100)
    hex_code: Optional[str] = None

    @field_validator('color')
    @classmethod
    def strip_color(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El color es requerido')
        return v

    @field_validator('hex_code')
    @classmethod
    def check_hex(cls, v):
        return validate_hex_color(v)


class EsmalteColorOut(BaseModel):
    id: int
    color: str
    hex_code: Optional[str] = None

    class Config:
        from_attributes = True


# ===== PRODUCTOS =====

class ProductBase(BaseModel):
    peso_crudo: Optional[Decimal] = Field(None, ge=0)
    peso_esmaltado: Optional[Decimal] = Field(None, ge=0)
    costo_pasta: Optional[Decimal] = Field(None, ge=0)
    costo_mano_obra: Optional[Decimal] = Field(None, ge=0)
    cantidad_esmalte: Optional[Decimal] = Field(None, ge=0)
    costo_esmalte: Optional[Decimal] = Field(None, ge=0)
    costo_horneado: Optional[Decimal] = Field(None, ge=0)
    costo_h_sancocho: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class ProductCreate(ProductBase):
    name: str = Field(..., min_length=1, max_length=200)
    stage: Stage
    tipo_id: int
    size_id: Optional[int] = None
    capacity_id: Optional[int] = None
    esmalte_color_id: Optional[int] = None
    product_category: ProductCategory = ProductCategory.CERAMICA


class ProductUpdate(ProductBase):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    stage: Optional[Stage] = None
    tipo_id: Optional[int] = None
    size_id: Optional[int] = None
    capacity_id: Optional[int] = None
    esmalte_color_id: Optional[int] = None
    product_category: Optional[ProductCategory] = None


class ProductOut(ProductBase):
    id: int
    name: str
    stage: str
    product_category: str
    tipo_id: int
    tipo_name: Optional[str] = None
    size_id: Optional[int] = None
    size_cm: Optional[Decimal] = None
    capacity_id: Optional[int] = None
    capacity_ml: Optional[Decimal] = None
    esmalte_color_id: Optional[int] = None
    esmalte_color_name: Optional[str] = None
    costo_total: Decimal = Decimal("0")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== INVENTARIO =====

class InventoryOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    tipo_name: Optional[str] = None
    stage: str
    esmalte_color_id: Optional[int] = None
    esmalte_color_name: Optional[str] = None
    esmalte_hex_code: Optional[str] = None
    quantity: int
    apartados: int
    vendidos: int
    disponibles: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MovementOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    movement_type: str
    from_stage: Optional[str] = None
    to_stage: Optional[str] = None
    from_color_id: Optional[int] = None
    from_color_name: Optional[str] = None
    to_color_id: Optional[int] = None
    to_color_name: Optional[str] = None
    quantity: int
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StageInput(BaseModel):
    """Entrada a CRUDO o paso CRUDO → SANCOCHADO."""
    product_id: int
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None

    @field_validator('notes')
    @classmethod
    def clean_notes(cls, v):
        return clean_optional_str(v)


class EsmaltadoInput(StageInput):
    """Paso SANCOCHADO → ESMALTADO, requiere color."""
    esmalte_color_id: int


class StageAdjustment(BaseModel):
    product_id: int
    stage: Stage
    esmalte_color_id: Optional[int] = None
    quantity: int = Field(..., ge=0, description="Cantidad final exacta")
    notes: Optional[str] = None

    @model_validator(mode='after')
    def color_only_for_esmaltado(self):
        if self.stage != Stage.ESMALTADO and self.esmalte_color_id is not None:
            raise ValueError('El color de esmalte solo aplica a la etapa ESMALTADO')
        return self


class MermaInput(StageAdjustment):
    quantity: int = Field(..., gt=0, description="Piezas perdidas")


class OperationResult(BaseModel):
    message: str
    inventory: List[InventoryOut] = []


class AdjustmentResult(BaseModel):
    message: str
    old_quantity: int
    new_quantity: int
    adjustment: int
    inventory: InventoryOut
