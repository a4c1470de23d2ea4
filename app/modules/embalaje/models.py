"""
Modelos del inventario de embalaje (cajas, bolsas, papel, etc.)
"""
import enum

from sqlalchemy import Column, String, Integer, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


class EmbalajeMovementType(str, enum.Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    ADJUSTMENT = "ADJUSTMENT"
    VENTA = "VENTA"


class EmbalajeInventory(Base, BaseMixin):
    """Una fila por producto de categoría EMBALAJE."""
    __tablename__ = "embalaje_inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_embalaje_inventory_quantity"),
        CheckConstraint("apartados >= 0", name="ck_embalaje_inventory_apartados"),
        CheckConstraint("apartados <= quantity", name="ck_embalaje_inventory_apartados_le_quantity"),
        CheckConstraint("vendidos >= 0", name="ck_embalaje_inventory_vendidos"),
    )

    product_id = Column(Integer, ForeignKey("produccion_products.id", ondelete="CASCADE"), unique=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    apartados = Column(Integer, nullable=False, default=0)
    vendidos = Column(Integer, nullable=False, default=0)

    product = relationship("Product")

    @property
    def disponibles(self) -> int:
        return (self.quantity or 0) - (self.apartados or 0)

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def tipo_name(self):
        return self.product.tipo_name if self.product else None


class EmbalajeMovement(Base, BaseMixin):
    __tablename__ = "embalaje_inventory_movements"

    product_id = Column(Integer, ForeignKey("produccion_products.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reference = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    product = relationship("Product")
    creator = relationship("User")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def created_by_name(self):
        return self.creator.username if self.creator else None
