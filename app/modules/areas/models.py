from sqlalchemy import Column, String, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


class Area(Base, BaseMixin):
    """
    Catálogo de áreas. Los demás módulos guardan el nombre del área y de la
    subárea como texto, por eso renombrar o borrar revisa esas referencias.
    """
    __tablename__ = "areas"

    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=True)

    subareas = relationship(
        "Subarea", back_populates="area", cascade="all, delete-orphan", order_by="Subarea.name"
    )


class Subarea(Base, BaseMixin):
    __tablename__ = "subareas"
    __table_args__ = (
        UniqueConstraint("area_id", "name", name="uq_subareas_area_name"),
    )

    area_id = Column(Integer, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    area = relationship("Area", back_populates="subareas")

    @property
    def area_name(self):
        return self.area.name if self.area else None
