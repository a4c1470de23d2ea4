from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.common.validators import clean_optional_str, validate_hex_color
from app.modules.contacts.schemas import ContactOut
from app.modules.cotizaciones.schemas import CotizacionOut
from app.modules.documents.schemas import DocumentOut
from app.modules.ledger.schemas import LedgerEntryOut
from app.modules.personal_tasks.schemas import PersonalTaskOut
from app.modules.tasks.schemas import TaskOut


def required_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('El nombre es requerido')
    return v


# ===== ÁREAS =====

class AreaCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, description="Color hexadecimal #RRGGBB")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return required_name(v)

    @field_validator('description')
    @classmethod
    def strip_description(cls, v):
        return clean_optional_str(v)

    @field_validator('color')
    @classmethod
    def check_color(cls, v):
        return validate_hex_color(v)


class AreaUpdate(AreaCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return required_name(v) if v is not None else v


class SubareaCreate(BaseModel):
    area_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return required_name(v)

    @field_validator('description')
    @classmethod
    def strip_description(cls, v):
        return clean_optional_str(v)


class SubareaUpdate(BaseModel):
    area_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return required_name(v) if v is not None else v


class SubareaOut(BaseModel):
    id: int
    area_id: int
    area_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AreaOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    subareas: List[SubareaOut] = []

    class Config:
        from_attributes = True


# ===== CONTENIDO POR ÁREA =====

class ContentCounts(BaseModel):
    tasks: int
    personal_tasks: int
    contacts: int
    documents: int
    ledger_entries: int
    ledger_entries_mxn: int
    cotizaciones: int
    total: int


class AreaContentItems(BaseModel):
    tasks: List[TaskOut] = []
    personal_tasks: List[PersonalTaskOut] = []
    contacts: List[ContactOut] = []
    documents: List[DocumentOut] = []
    ledger_entries: List[LedgerEntryOut] = []
    ledger_entries_mxn: List[LedgerEntryOut] = []
    cotizaciones: List[CotizacionOut] = []


class AreaContent(BaseModel):
    area: str
    subarea: Optional[str] = None
    counts: ContentCounts
    content: AreaContentItems
