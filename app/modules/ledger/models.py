"""
Modelos de los libros de movimientos (USD y MXN)

Ambos libros comparten columnas; el MXN además admite facturas (CFDI).
Los montos se guardan con signo: egresos negativos, ingresos positivos.
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Boolean, Numeric, Text, Date, DateTime, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship, declared_attr

from app.database.database import Base
from app.common.mixins import BaseMixin, AreaMixin


class EntryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Currency(str, enum.Enum):
    USD = "USD"
    MXN = "MXN"


class FacturaFileType(str, enum.Enum):
    PDF = "pdf"
    XML = "xml"


class LedgerColumnsMixin(AreaMixin):
    """Columnas comunes de un movimiento financiero."""

    amount = Column(Numeric(14, 2), nullable=False)
    concept = Column(String(255), nullable=False)
    bank_account = Column(String(100), nullable=False)
    internal_id = Column(String(50), unique=True, nullable=False, index=True)
    bank_movement_id = Column(String(100), nullable=True)
    entry_type = Column(String(10), nullable=False, index=True)
    transaction_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    por_realizar = Column(Boolean, nullable=False, default=False)

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def user(cls):
        return relationship("User")

    @property
    def username(self):
        return self.user.username if self.user else None


class AttachmentColumnsMixin:
    file_name = Column(String(255), nullable=False)
    file_url = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(100), nullable=True)


# ===== USD =====

class LedgerEntry(Base, BaseMixin, LedgerColumnsMixin):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint("entry_type IN ('income', 'expense')", name="ck_ledger_entries_entry_type"),
    )

    attachments = relationship(
        "LedgerAttachment", back_populates="entry",
        cascade="all, delete-orphan", order_by="LedgerAttachment.id"
    )

    @property
    def currency(self) -> str:
        return Currency.USD.value


class LedgerAttachment(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "ledger_attachments"

    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries.id", ondelete="CASCADE"), nullable=False, index=True)

    entry = relationship("LedgerEntry", back_populates="attachments")


# ===== MXN =====

class LedgerEntryMxn(Base, BaseMixin, LedgerColumnsMixin):
    __tablename__ = "ledger_entries_mxn"
    __table_args__ = (
        CheckConstraint("entry_type IN ('income', 'expense')", name="ck_ledger_entries_mxn_entry_type"),
    )

    attachments = relationship(
        "LedgerAttachmentMxn", back_populates="entry",
        cascade="all, delete-orphan", order_by="LedgerAttachmentMxn.id"
    )
    facturas = relationship(
        "LedgerFacturaMxn", back_populates="entry",
        cascade="all, delete-orphan", order_by="LedgerFacturaMxn.id"
    )

    @property
    def currency(self) -> str:
        return Currency.MXN.value


class LedgerAttachmentMxn(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "ledger_attachments_mxn"

    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries_mxn.id", ondelete="CASCADE"), nullable=False, index=True)

    entry = relationship("LedgerEntryMxn", back_populates="attachments")


class LedgerFacturaMxn(Base, BaseMixin):
    """Factura (CFDI) ligada a un movimiento MXN."""
    __tablename__ = "ledger_facturas_mxn"

    ledger_entry_id = Column(Integer, ForeignKey("ledger_entries_mxn.id", ondelete="CASCADE"), nullable=False, index=True)
    folio = Column(String(100), nullable=True)
    uuid = Column(String(64), unique=True, nullable=True)
    rfc_emisor = Column(String(20), nullable=True)
    rfc_receptor = Column(String(20), nullable=True)
    total = Column(Numeric(14, 2), nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=True)
    iva = Column(Numeric(14, 2), nullable=True)
    fecha_timbrado = Column(DateTime(timezone=True), nullable=True)
    file_url = Column(Text, nullable=True)
    file_type = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    entry = relationship("LedgerEntryMxn", back_populates="facturas")
