"""
Modelos del módulo de Contactos

Un contacto es una ficha de cliente, proveedor, socio o prospecto clasificada
por área/subárea. Los archivos viven en un proveedor externo; aquí solo se
guardan URL y metadatos.
"""

import enum

from sqlalchemy import Column, String, Integer, Text, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin, AreaMixin
from app.modules.ledger.models import AttachmentColumnsMixin


class ContactType(str, enum.Enum):
    BUSINESS = "business"
    CLIENT = "client"
    SUPPLIER = "supplier"
    PARTNER = "partner"
    PROSPECT = "prospect"
    VENDOR = "vendor"


class ContactStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class Contact(Base, BaseMixin, AreaMixin):
    __tablename__ = "contacts"
    __table_args__ = (
        CheckConstraint(
            "contact_type IN ('business', 'client', 'supplier', 'partner', 'prospect', 'vendor')",
            name="ck_contacts_contact_type"
        ),
        CheckConstraint("status IN ('active', 'inactive', 'archived')", name="ck_contacts_status"),
    )

    internal_id = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    contact_type = Column(String(20), nullable=False, default=ContactType.BUSINESS.value, index=True)
    status = Column(String(20), nullable=False, default=ContactStatus.ACTIVE.value, index=True)

    # Empresa
    company = Column(String(200), nullable=True)
    position = Column(String(100), nullable=True)

    # Medios de contacto
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    mobile = Column(String(50), nullable=True)
    website = Column(String(255), nullable=True)

    # Dirección
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    rfc = Column(String(20), nullable=True)  # RFC mexicano
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    user = relationship("User")
    attachments = relationship(
        "ContactAttachment", back_populates="contact",
        cascade="all, delete-orphan", order_by="ContactAttachment.id"
    )

    @property
    def username(self):
        return self.user.username if self.user else None

    def __repr__(self):
        return f"<Contact(id={self.id}, internal_id='{self.internal_id}', name='{self.name}')>"


class ContactAttachment(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "contact_attachments"

    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)

    contact = relationship("Contact", back_populates="attachments")
