"""
Cotizaciones: movimientos de efectivo cotizados en USD o MXN
"""

from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin
from app.modules.ledger.models import LedgerColumnsMixin, AttachmentColumnsMixin


class CotizacionEntry(Base, BaseMixin, LedgerColumnsMixin):
    __tablename__ = "cotizaciones_entries"
    __table_args__ = (
        CheckConstraint("entry_type IN ('income', 'expense')", name="ck_cotizaciones_entries_entry_type"),
        CheckConstraint("currency IN ('USD', 'MXN')", name="ck_cotizaciones_entries_currency"),
    )

    currency = Column(String(3), nullable=False, default="USD", index=True)

    attachments = relationship(
        "CotizacionAttachment", back_populates="entry",
        cascade="all, delete-orphan", order_by="CotizacionAttachment.id"
    )


class CotizacionAttachment(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "cotizaciones_attachments"

    cotizacion_entry_id = Column(
        Integer, ForeignKey("cotizaciones_entries.id", ondelete="CASCADE"), nullable=False, index=True
    )

    entry = relationship("CotizacionEntry", back_populates="attachments")
