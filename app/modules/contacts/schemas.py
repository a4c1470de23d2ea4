"""
Esquemas Pydantic para el módulo de Contactos

- ContactCreate / ContactUpdate: entrada, con limpieza de cadenas vacías
- ContactOut: salida con adjuntos y nombre del usuario que lo registró
- ContactSummary: totales por tipo y por estado
"""

from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Dict, List, Optional
from datetime import datetime

from app.common.validators import clean_optional_str
from app.modules.contacts.models import ContactType, ContactStatus
from app.modules.ledger.schemas import AttachmentCreate, AttachmentOut


OPTIONAL_TEXT_FIELDS = (
    'company', 'position', 'phone', 'mobile', 'address', 'city', 'state',
    'country', 'postal_code', 'website', 'rfc', 'notes'
)


def clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Quita etiquetas vacías y duplicadas conservando el orden."""
    if tags is None:
        return None
    cleaned = []
    for tag in tags:
        tag = (tag or "").strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


# ===== CONTACT SCHEMAS =====

class ContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Nombre del contacto")
    contact_type: ContactType = ContactType.BUSINESS
    status: ContactStatus = ContactStatus.ACTIVE
    company: Optional[str] = Field(None, max_length=200)
    position: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    website: Optional[str] = Field(None, max_length=255)
    rfc: Optional[str] = Field(None, max_length=20, description="RFC (se guarda en mayúsculas)")
    area: str = Field(..., min_length=1, max_length=100)
    subarea: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator('name', 'area', 'subarea')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('email', mode='before')
    @classmethod
    def empty_email(cls, v):
        return clean_optional_str(v) if isinstance(v, str) else v

    @field_validator(*OPTIONAL_TEXT_FIELDS)
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @field_validator('rfc')
    @classmethod
    def upper_rfc(cls, v):
        return v.upper() if v else v

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, v):
        return clean_tags(v)


class ContactCreate(ContactBase):
    attachments: List[AttachmentCreate] = Field(default_factory=list)


class ContactUpdate(BaseModel):
    """Actualización parcial; nombre, área y subárea no pueden quedar vacíos."""
    name: Optional[str] = Field(None, max_length=200)
    contact_type: Optional[ContactType] = None
    status: Optional[ContactStatus] = None
    company: Optional[str] = Field(None, max_length=200)
    position: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    website: Optional[str] = Field(None, max_length=255)
    rfc: Optional[str] = Field(None, max_length=20)
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def empty_email(cls, v):
        return clean_optional_str(v) if isinstance(v, str) else v

    @field_validator(*OPTIONAL_TEXT_FIELDS)
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @field_validator('rfc')
    @classmethod
    def upper_rfc(cls, v):
        return v.upper() if v else v

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, v):
        return clean_tags(v)


class ContactOut(BaseModel):
    id: int
    internal_id: str
    name: str
    contact_type: str
    status: str
    company: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    website: Optional[str] = None
    rfc: Optional[str] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    tags: List[str] = []
    notes: Optional[str] = None
    user_id: int
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []

    class Config:
        from_attributes = True


class ContactSummary(BaseModel):
    total: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]
