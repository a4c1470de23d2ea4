"""
Modelos SQLAlchemy para el módulo de Ventas (mayoreo)

- Cotizaciones de venta con partidas
- Pedidos creados desde una cotización
- Asignaciones de inventario (cerámica y embalaje) a partidas de pedido
- Entregas registradas y pagos ligados al libro MXN
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Boolean, Numeric, Text, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


# ===== ENUMS =====

class QuotationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PedidoStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PRODUCTION = "IN_PRODUCTION"
    READY = "READY"
    DELIVERED = "DELIVERED"
    ENTREGADO_Y_PAGADO = "ENTREGADO_Y_PAGADO"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class InventoryKind(str, enum.Enum):
    CERAMICA = "CERAMICA"
    EMBALAJE = "EMBALAJE"


# ===== COTIZACIONES =====

class Quotation(Base, BaseMixin):
    __tablename__ = "ventas_quotations"

    quotation_number = Column(String(30), unique=True, nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)
    valid_until = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=QuotationStatus.DRAFT.value)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    items = relationship(
        "QuotationItem", back_populates="quotation",
        cascade="all, delete-orphan", order_by="QuotationItem.id"
    )


class QuotationItem(Base, BaseMixin):
    __tablename__ = "ventas_quotation_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_ventas_quotation_items_quantity"),
    )

    quotation_id = Column(Integer, ForeignKey("ventas_quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("produccion_products.id"), nullable=False)
    product_name = Column(String(200), nullable=False)
    tipo_name = Column(String(100), nullable=True)
    size_cm = Column(Numeric(8, 2), nullable=True)
    capacity_ml = Column(Numeric(10, 2), nullable=True)
    esmalte_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    esmalte_color = Column(String(100), nullable=True)
    esmalte_hex_code = Column(String(7), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    tax_percentage = Column(Numeric(5, 2), nullable=False, default=16)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    quotation = relationship("Quotation", back_populates="items")


# ===== PEDIDOS =====

class Pedido(Base, BaseMixin):
    __tablename__ = "ventas_pedidos"

    pedido_number = Column(String(30), unique=True, nullable=False, index=True)
    quotation_id = Column(Integer, ForeignKey("ventas_quotations.id"), nullable=True, index=True)
    quotation_number = Column(String(30), nullable=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)
    expected_delivery_date = Column(Date, nullable=True)
    actual_delivery_date = Column(Date, nullable=True)
    payment_method = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default=PedidoStatus.PENDING.value, index=True)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    items = relationship(
        "PedidoItem", back_populates="pedido",
        cascade="all, delete-orphan", order_by="PedidoItem.id"
    )
    allocations = relationship("PedidoAllocation", back_populates="pedido", cascade="all, delete-orphan")
    embalaje_allocations = relationship("PedidoEmbalajeAllocation", back_populates="pedido", cascade="all, delete-orphan")
    deliveries = relationship("PedidoDelivery", back_populates="pedido", cascade="all, delete-orphan")
    payments = relationship("PedidoPayment", back_populates="pedido", cascade="all, delete-orphan")

    @property
    def amount_remaining(self):
        return (self.total or 0) - (self.amount_paid or 0)


class PedidoItem(Base, BaseMixin):
    __tablename__ = "ventas_pedido_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_ventas_pedido_items_quantity"),
    )

    pedido_id = Column(Integer, ForeignKey("ventas_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("produccion_products.id"), nullable=False)
    product_category = Column(String(20), nullable=False, default=InventoryKind.CERAMICA.value)
    product_name = Column(String(200), nullable=False)
    tipo_name = Column(String(100), nullable=True)
    size_cm = Column(Numeric(8, 2), nullable=True)
    capacity_ml = Column(Numeric(10, 2), nullable=True)
    esmalte_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    esmalte_color = Column(String(100), nullable=True)
    esmalte_hex_code = Column(String(7), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    tax_percentage = Column(Numeric(5, 2), nullable=False, default=16)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    pedido = relationship("Pedido", back_populates="items")
    allocations = relationship("PedidoAllocation", back_populates="pedido_item", passive_deletes=True)
    embalaje_allocations = relationship("PedidoEmbalajeAllocation", back_populates="pedido_item", passive_deletes=True)

    @property
    def quantity_allocated(self) -> int:
        return sum(a.quantity_allocated for a in self.allocations) + \
            sum(a.quantity_allocated for a in self.embalaje_allocations)


class PedidoAllocation(Base, BaseMixin):
    """Apartado de una fila ESMALTADO de produccion_inventory para una partida."""
    __tablename__ = "ventas_pedido_allocations"
    __table_args__ = (
        CheckConstraint("quantity_allocated > 0", name="ck_ventas_pedido_allocations_quantity"),
    )

    pedido_id = Column(Integer, ForeignKey("ventas_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    pedido_item_id = Column(Integer, ForeignKey("ventas_pedido_items.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_id = Column(Integer, ForeignKey("produccion_inventory.id"), nullable=False, index=True)
    quantity_allocated = Column(Integer, nullable=False)
    allocated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    pedido = relationship("Pedido", back_populates="allocations")
    pedido_item = relationship("PedidoItem", back_populates="allocations")
    inventory = relationship("ProduccionInventory")


class PedidoEmbalajeAllocation(Base, BaseMixin):
    """Apartado de embalaje_inventory para una partida de embalaje."""
    __tablename__ = "ventas_pedido_embalaje_allocations"
    __table_args__ = (
        CheckConstraint("quantity_allocated > 0", name="ck_ventas_pedido_embalaje_allocations_quantity"),
    )

    pedido_id = Column(Integer, ForeignKey("ventas_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    pedido_item_id = Column(Integer, ForeignKey("ventas_pedido_items.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_id = Column(Integer, ForeignKey("embalaje_inventory.id"), nullable=False, index=True)
    quantity_allocated = Column(Integer, nullable=False)
    allocated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    pedido = relationship("Pedido", back_populates="embalaje_allocations")
    pedido_item = relationship("PedidoItem", back_populates="embalaje_allocations")
    inventory = relationship("EmbalajeInventory")


class PedidoDelivery(Base, BaseMixin):
    """
    Cantidades consumidas del inventario al entregar un pedido.
    counted_as_sold indica si ya se sumaron a vendidos.
    """
    __tablename__ = "ventas_pedido_deliveries"

    pedido_id = Column(Integer, ForeignKey("ventas_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_kind = Column(String(20), nullable=False)
    inventory_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    counted_as_sold = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    pedido = relationship("Pedido", back_populates="deliveries")


class PedidoPayment(Base, BaseMixin):
    """Liga un ingreso del libro MXN (VENTAS MAYOREO) a un pedido."""
    __tablename__ = "ventas_pedido_payments"
    __table_args__ = (
        UniqueConstraint("ledger_entry_id", name="uq_ventas_pedido_payments_ledger_entry"),
    )

    pedido_id = Column(Integer, ForeignKey("ventas_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries_mxn.id"), nullable=False)
    notes = Column(Text, nullable=True)
    attached_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    pedido = relationship("Pedido", back_populates="payments")
    ledger_entry = relationship("LedgerEntryMxn")
