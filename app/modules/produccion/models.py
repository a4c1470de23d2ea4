"""
Modelos SQLAlchemy para el módulo de Producción

- Catálogos: tipo, tamaño, capacidad y color de esmalte
- Productos (cerámica y embalaje) con pesos y costos
- Inventario por etapa (CRUDO → SANCOCHADO → ESMALTADO) y color
- Bitácora de movimientos de inventario
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, Text, ForeignKey, CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


# ===== ENUMS =====

class Stage(str, enum.Enum):
    """Etapas del proceso de producción"""
    CRUDO = "CRUDO"
    SANCOCHADO = "SANCOCHADO"
    ESMALTADO = "ESMALTADO"


class ProductCategory(str, enum.Enum):
    CERAMICA = "CERAMICA"
    EMBALAJE = "EMBALAJE"


class MovementType(str, enum.Enum):
    CRUDO_INPUT = "CRUDO_INPUT"
    SANCOCHADO_PROCESS = "SANCOCHADO_PROCESS"
    ESMALTADO_PROCESS = "ESMALTADO_PROCESS"
    ADJUSTMENT = "ADJUSTMENT"
    MERMA = "MERMA"
    VENTA = "VENTA"  # Consumo por entrega de pedido


# ===== CATÁLOGOS =====

class Tipo(Base, BaseMixin):
    __tablename__ = "produccion_tipo"

    name = Column(String(100), unique=True, nullable=False)


class Size(Base, BaseMixin):
    __tablename__ = "produccion_size"

    size_cm = Column(Numeric(8, 2), unique=True, nullable=False)


class Capacity(Base, BaseMixin):
    __tablename__ = "produccion_capacity"

    capacity_ml = Column(Numeric(10, 2), unique=True, nullable=False)


class EsmalteColor(Base, BaseMixin):
    __tablename__ = "produccion_esmalte_color"

    color = Column(String(100), unique=True, nullable=False)
    hex_code = Column(String(7), nullable=True)


# ===== PRODUCTOS =====

class Product(Base, BaseMixin):
    """
    Producto de producción.

    product_category decide en qué inventario vive el producto:
    CERAMICA usa produccion_inventory por etapa, EMBALAJE usa embalaje_inventory.
    """
    __tablename__ = "produccion_products"

    name = Column(String(200), nullable=False, index=True)
    stage = Column(String(20), nullable=False)
    product_category = Column(String(20), nullable=False, default=ProductCategory.CERAMICA.value, index=True)
    tipo_id = Column(Integer, ForeignKey("produccion_tipo.id"), nullable=False)
    size_id = Column(Integer, ForeignKey("produccion_size.id"), nullable=True)
    capacity_id = Column(Integer, ForeignKey("produccion_capacity.id"), nullable=True)
    esmalte_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)

    peso_crudo = Column(Numeric(10, 2), nullable=True)
    peso_esmaltado = Column(Numeric(10, 2), nullable=True)
    costo_pasta = Column(Numeric(12, 2), nullable=True)
    costo_mano_obra = Column(Numeric(12, 2), nullable=True)
    cantidad_esmalte = Column(Numeric(10, 2), nullable=True)
    costo_esmalte = Column(Numeric(12, 2), nullable=True)
    costo_horneado = Column(Numeric(12, 2), nullable=True)
    costo_h_sancocho = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    tipo = relationship("Tipo")
    size = relationship("Size")
    capacity = relationship("Capacity")
    esmalte_color = relationship("EsmalteColor")

    @property
    def tipo_name(self):
        return self.tipo.name if self.tipo else None

    @property
    def size_cm(self):
        return self.size.size_cm if self.size else None

    @property
    def capacity_ml(self):
        return self.capacity.capacity_ml if self.capacity else None

    @property
    def esmalte_color_name(self):
        return self.esmalte_color.color if self.esmalte_color else None

    @property
    def costo_total(self):
        costs = [
            self.costo_pasta, self.costo_mano_obra, self.costo_esmalte,
            self.costo_horneado, self.costo_h_sancocho
        ]
        return sum((c for c in costs if c is not None), 0)


# ===== INVENTARIO =====

class ProduccionInventory(Base, BaseMixin):
    """
    Existencias por producto, etapa y color.

    apartados es la suma de las asignaciones activas (pedidos y kits) que
    apuntan a la fila; nunca puede superar quantity.
    """
    __tablename__ = "produccion_inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "stage", "esmalte_color_id", name="uq_produccion_inventory_product_stage_color"),
        CheckConstraint("quantity >= 0", name="ck_produccion_inventory_quantity"),
        CheckConstraint("apartados >= 0", name="ck_produccion_inventory_apartados"),
        CheckConstraint("apartados <= quantity", name="ck_produccion_inventory_apartados_le_quantity"),
        CheckConstraint("vendidos >= 0", name="ck_produccion_inventory_vendidos"),
    )

    product_id = Column(Integer, ForeignKey("produccion_products.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(20), nullable=False, index=True)
    esmalte_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    apartados = Column(Integer, nullable=False, default=0)
    vendidos = Column(Integer, nullable=False, default=0)

    product = relationship("Product")
    esmalte_color = relationship("EsmalteColor")

    @property
    def disponibles(self) -> int:
        return (self.quantity or 0) - (self.apartados or 0)

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def tipo_name(self):
        return self.product.tipo_name if self.product else None

    @property
    def esmalte_color_name(self):
        return self.esmalte_color.color if self.esmalte_color else None

    @property
    def esmalte_hex_code(self):
        return self.esmalte_color.hex_code if self.esmalte_color else None


class ProduccionMovement(Base, BaseMixin):
    """Bitácora de movimientos; quantity negativa indica salida."""
    __tablename__ = "produccion_inventory_movements"
    __table_args__ = (
        Index("idx_produccion_movements_product_created", "product_id", "created_at"),
    )

    product_id = Column(Integer, ForeignKey("produccion_products.id", ondelete="CASCADE"), nullable=False)
    movement_type = Column(String(30), nullable=False)
    from_stage = Column(String(20), nullable=True)
    to_stage = Column(String(20), nullable=True)
    from_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    to_color_id = Column(Integer, ForeignKey("produccion_esmalte_color.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    reference = Column(String(50), nullable=True)  # ej. número de pedido
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    product = relationship("Product")
    from_color = relationship("EsmalteColor", foreign_keys=[from_color_id])
    to_color = relationship("EsmalteColor", foreign_keys=[to_color_id])
    creator = relationship("User")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def from_color_name(self):
        return self.from_color.color if self.from_color else None

    @property
    def to_color_name(self):
        return self.to_color.color if self.to_color else None

    @property
    def created_by_name(self):
        return self.creator.username if self.creator else None
