"""
Esquemas Pydantic para el módulo de E-commerce
"""

from pydantic import BaseModel, Field, EmailStr, field_validator, model_validator
from decimal import Decimal
from typing import List, Optional
from datetime import date, datetime

from app.common.validators import clean_optional_str
from app.modules.ecommerce.models import EcommercePedidoStatus


# ===== KITS =====

class KitItemCreate(BaseModel):
    product_id: int
    esmalte_color_id: Optional[int] = None
    quantity: int = Field(..., gt=0)


class KitItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    esmalte_color_id: Optional[int] = None
    esmalte_color_name: Optional[str] = None
    quantity: int

    class Config:
        from_attributes = True


class KitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    min_stock: int = Field(default=0, ge=0)
    max_stock: int = Field(default=100, ge=0)
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre del kit es requerido')
        return v

    @field_validator('sku', 'description')
    @classmethod
    def empty_to_none(cls, v):
        return clean_optional_str(v)


class KitCreate(KitBase):
    items: List[KitItemCreate] = Field(..., min_length=1)

    @model_validator(mode='after')
    def check_stock_range(self):
        if self.min_stock > self.max_stock:
            raise ValueError('min_stock no puede ser mayor que max_stock')
        return self


class KitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    items: Optional[List[KitItemCreate]] = Field(None, min_length=1)

    @field_validator('sku', 'description')
    @classmethod
    def empty_to_none(cls, v):
        return clean_optional_str(v)


class KitOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    price: Decimal
    min_stock: int
    max_stock: int
    current_stock: int
    low_stock: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[KitItemOut] = []

    class Config:
        from_attributes = True


class KitAllocationOut(BaseModel):
    id: int
    inventory_id: int
    quantity_allocated: int

    class Config:
        from_attributes = True


class KitDetailOut(KitOut):
    allocations: List[KitAllocationOut] = []


class StockAdjustment(BaseModel):
    adjustment: int
    notes: Optional[str] = None


class StockAdjustmentResult(BaseModel):
    message: str
    previous_stock: int
    adjustment: int
    new_stock: int


class KitInventoryRow(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    tipo_name: Optional[str] = None
    esmalte_color_id: Optional[int] = None
    esmalte_color_name: Optional[str] = None
    esmalte_hex_code: Optional[str] = None
    quantity: int
    apartados: int
    disponibles: int

    class Config:
        from_attributes = True


# ===== PEDIDOS =====

class EcommercePedidoItemCreate(BaseModel):
    kit_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class EcommercePedidoCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_address: Optional[str] = None
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    items: List[EcommercePedidoItemCreate] = Field(..., min_length=1)

    @field_validator('customer_name')
    @classmethod
    def strip_customer_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre del cliente es requerido')
        return v

    @field_validator('customer_email', 'customer_phone', 'customer_address', 'payment_method', 'notes', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return clean_optional_str(v) if isinstance(v, str) else v


class EcommercePedidoUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=200)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_address: Optional[str] = None
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    payment_method: Optional[str] = Field(None, max_length=50)
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class EcommercePedidoStatusUpdate(BaseModel):
    status: EcommercePedidoStatus


class EcommercePedidoItemOut(BaseModel):
    id: int
    kit_id: int
    kit_name: str
    kit_sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class EcommercePedidoOut(BaseModel):
    id: int
    pedido_number: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    shipping_cost: Decimal
    discount: Decimal
    subtotal: Decimal
    total: Decimal
    payment_method: Optional[str] = None
    amount_paid: Decimal = Decimal("0")
    amount_remaining: Decimal = Decimal("0")
    payment_status: str
    tracking_number: Optional[str] = None
    status: str
    shipped_date: Optional[date] = None
    delivered_date: Optional[date] = None
    notes: Optional[str] = None
    total_kits: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[EcommercePedidoItemOut] = []

    class Config:
        from_attributes = True


# ===== PAGOS =====

class EcommercePaymentAttach(BaseModel):
    ledger_entry_id: int
    notes: Optional[str] = None


class EcommercePaymentOut(BaseModel):
    id: int
    pedido_id: int
    ledger_entry_id: int
    amount: Decimal
    concept: Optional[str] = None
    transaction_date: Optional[date] = None
    internal_id: Optional[str] = None
    notes: Optional[str] = None
    attached_by: Optional[int] = None
    created_at: Optional[datetime] = None


class EcommercePedidoPaymentsResponse(BaseModel):
    payments: List[EcommercePaymentOut]
    total_paid: Decimal
    payment_count: int


class EcommercePaymentSummary(BaseModel):
    pedido_id: int
    pedido_number: str
    total: Decimal
    amount_paid: Decimal
    amount_remaining: Decimal
    payment_status: str
    payment_count: int
