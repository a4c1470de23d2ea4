"""
Esquemas Pydantic para el módulo de Ventas
"""

from pydantic import BaseModel, Field, EmailStr, field_validator
from decimal import Decimal
from typing import List, Optional
from datetime import date, datetime

from app.common.validators import clean_optional_str
from app.modules.ventas.models import QuotationStatus, PedidoStatus


# ===== COTIZACIONES =====

class QuotationItemCreate(BaseModel):
    product_id: int
    esmalte_color_id: Optional[int] = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class QuotationBase(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_address: Optional[str] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    terms: Optional[str] = None

    @field_validator('customer_name')
    @classmethod
    def strip_customer_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre del cliente es requerido')
        return v

    @field_validator('customer_email', 'customer_phone', 'customer_address', 'notes', 'terms', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return clean_optional_str(v) if isinstance(v, str) else v


class QuotationCreate(QuotationBase):
    status: QuotationStatus = QuotationStatus.DRAFT
    items: List[QuotationItemCreate] = Field(..., min_length=1)


class QuotationUpdate(QuotationBase):
    """Reemplaza encabezado y partidas completas."""
    status: Optional[QuotationStatus] = None
    items: List[QuotationItemCreate] = Field(..., min_length=1)


class QuotationItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    tipo_name: Optional[str] = None
    size_cm: Optional[Decimal] = None
    capacity_ml: Optional[Decimal] = None
    esmalte_color_id: Optional[int] = None
    esmalte_color: Optional[str] = None
    esmalte_hex_code: Optional[str] = None
    quantity: int
    unit_price: Decimal
    discount_percentage: Decimal
    tax_percentage: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class QuotationOut(BaseModel):
    id: int
    quotation_number: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    status: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[QuotationItemOut] = []

    class Config:
        from_attributes = True


# ===== PEDIDOS =====

class PedidoCreate(BaseModel):
    quotation_id: int
    expected_delivery_date: Optional[date] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class PedidoStatusUpdate(BaseModel):
    status: PedidoStatus


class PedidoItemOut(QuotationItemOut):
    product_category: str
    quantity_allocated: int = 0


class PedidoOut(BaseModel):
    id: int
    pedido_number: str
    quotation_id: Optional[int] = None
    quotation_number: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    expected_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    status: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    amount_remaining: Decimal
    payment_status: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[PedidoItemOut] = []

    class Config:
        from_attributes = True


class AllocationShortfall(BaseModel):
    pedido_item_id: int
    product_name: str
    requested: int
    allocated: int
    missing: int


class PedidoStatusResponse(BaseModel):
    message: str
    pedido: PedidoOut
    shortfalls: List[AllocationShortfall] = []


# ===== INVENTARIO DE PEDIDOS =====

class AvailableInventoryRow(BaseModel):
    inventory_id: int
    stage: Optional[str] = None
    esmalte_color_id: Optional[int] = None
    esmalte_color: Optional[str] = None
    quantity: int
    apartados: int
    disponibles: int


class ItemAvailability(BaseModel):
    pedido_item_id: int
    product_id: int
    product_name: str
    product_category: str
    esmalte_color_id: Optional[int] = None
    esmalte_color: Optional[str] = None
    quantity_requested: int
    quantity_allocated: int
    still_needed: int
    total_cant: int = 0
    total_apartados: int = 0
    total_disponibles: int = 0
    shortfall: int = 0
    available_inventory: List[AvailableInventoryRow] = []


class AllocationCreate(BaseModel):
    pedido_item_id: int
    inventory_id: int
    quantity: int = Field(..., gt=0)


class AllocationOut(BaseModel):
    id: int
    pedido_id: int
    pedido_item_id: int
    inventory_id: int
    quantity_allocated: int
    allocated_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== PAGOS =====

class PaymentAttach(BaseModel):
    ledger_entry_id: int
    notes: Optional[str] = None


class PaymentOut(BaseModel):
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


class PedidoPaymentsResponse(BaseModel):
    payments: List[PaymentOut]
    total_paid: Decimal


class AvailablePayment(BaseModel):
    id: int
    internal_id: str
    amount: Decimal
    concept: str
    bank_account: str
    transaction_date: date
    area: Optional[str] = None
    subarea: Optional[str] = None
    username: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentSummary(BaseModel):
    pedido_id: int
    pedido_number: str
    total: Decimal
    amount_paid: Decimal
    amount_remaining: Decimal
    payment_status: str
    payment_count: int
