"""
Mixins comunes para los modelos
"""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class BaseMixin(TimestampMixin):
    """Clave primaria entera + timestamps para la mayoría de los modelos"""

    id = Column(Integer, primary_key=True, index=True)


class AreaMixin:
    """
    Clasificación por área/subárea.

    Las áreas se referencian por nombre (etiquetado desnormalizado), no por FK,
    igual que en tareas, contactos, documentos y libros contables.
    """

    area = Column(String(100), nullable=True, index=True)
    subarea = Column(String(100), nullable=True, index=True)
