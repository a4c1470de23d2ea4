"""
Modelos SQLAlchemy para el módulo de E-commerce

- Kits: paquetes de varios productos esmaltados con stock propio
- Asignaciones de inventario que respaldan el stock de cada kit
- Pedidos de tienda en línea por kit
- Pagos: ingresos MXN ligados a pedidos
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Boolean, Numeric, Text, Date, ForeignKey, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


class EcommercePedidoStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    ENTREGADO_Y_PAGADO = "ENTREGADO_Y_PAGADO"
    CANCELLED = "CANCELLED"


# ===== KITS =====

class Kit(Base, BaseMixin):
    __tablename__ = "ecommerce_kits"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_ecommerce_kits_current_stock"),
        CheckConstraint("current_stock <= max_stock", name="ck_ecommerce_kits_max_stock"),
    )

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(100), unique=True, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=False, default=100)
    current_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    items = relationship("KitItem", back_populates="kit", cascade="all, delete-orphan", order_by="KitItem.id")
    allocations = relationship("KitAllocation", back_populates="kit", cascade="all, delete-orphan")

    @property
    def low_stock(self) -> bool:
        return self.current_stock <= self.min_stock


class KitItem(Base, BaseMixin):
    __tablename__ = "ecommerce_kit_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_ecommerce_kit_items_quantity"),
    )

    kit_id = Column(Integer, ForeignKey("ecommerce_kits.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("produccion_products.id"), nullable=False)
    esmalte_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    quantity = Column(Integer, nullable=False)

    kit = relationship("Kit", back_populates="items")
    product = relationship("Product")
    esmalte_color = relationship("EsmalteColor")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def esmalte_color_name(self):
        return self.esmalte_color.color if self.esmalte_color else None


class KitAllocation(Base, BaseMixin):
    """Inventario ESMALTADO apartado para respaldar el stock de un kit."""
    __tablename__ = "ecommerce_kit_allocations"
    __table_args__ = (
        UniqueConstraint("kit_id", "inventory_id", name="uq_ecommerce_kit_allocations_kit_inventory"),
        CheckConstraint("quantity_allocated > 0", name="ck_ecommerce_kit_allocations_quantity"),
    )

    kit_id = Column(Integer, ForeignKey("ecommerce_kits.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_id = Column(Integer, ForeignKey("produccion_inventory.id"), nullable=False, index=True)
    quantity_allocated = Column(Integer, nullable=False)

    kit = relationship("Kit", back_populates="allocations")
    inventory = relationship("ProduccionInventory")


# ===== PEDIDOS =====

class EcommercePedido(Base, BaseMixin):
    __tablename__ = "ecommerce_pedidos"

    pedido_number = Column(String(30), unique=True, nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    payment_method = Column(String(50), nullable=True)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default="unpaid")
    tracking_number = Column(String(100), nullable=True)
    status = Column(String(30), nullable=False, default=EcommercePedidoStatus.PENDING.value, index=True)
    shipped_date = Column(Date, nullable=True)
    delivered_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    items = relationship(
        "EcommercePedidoItem", back_populates="pedido",
        cascade="all, delete-orphan", order_by="EcommercePedidoItem.id"
    )
    payments = relationship("EcommercePedidoPayment", back_populates="pedido", cascade="all, delete-orphan")

    @property
    def total_kits(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def amount_remaining(self):
        return (self.total or 0) - (self.amount_paid or 0)


class EcommercePedidoItem(Base, BaseMixin):
    __tablename__ = "ecommerce_pedido_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_ecommerce_pedido_items_quantity"),
    )

    pedido_id = Column(Integer, ForeignKey("ecommerce_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    kit_id = Column(Integer, ForeignKey("ecommerce_kits.id"), nullable=False)
    kit_name = Column(String(200), nullable=False)
    kit_sku = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)

    pedido = relationship("EcommercePedido", back_populates="items")
    kit = relationship("Kit")


class EcommercePedidoPayment(Base, BaseMixin):
    """Liga un ingreso del libro MXN (VENTAS ECOMMERCE) a un pedido de tienda en línea."""
    __tablename__ = "ecommerce_pedido_payments"
    __table_args__ = (
        UniqueConstraint("ledger_entry_id", name="uq_ecommerce_pedido_payments_ledger_entry"),
    )

    pedido_id = Column(Integer, ForeignKey("ecommerce_pedidos.id", ondelete="CASCADE"), nullable=False, index=True)
    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries_mxn.id"), nullable=False)
    notes = Column(Text, nullable=True)
    attached_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    pedido = relationship("EcommercePedido", back_populates="payments")
    ledger_entry = relationship("LedgerEntryMxn")
