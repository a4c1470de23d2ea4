from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import List, Optional
from datetime import date, datetime

from app.common.validators import clean_optional_str, CONCEPT_MAX_LENGTH
from app.modules.ledger.models import EntryType, FacturaFileType


# ===== ADJUNTOS =====

class AttachmentCreate(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1)
    file_size: Optional[int] = Field(None, ge=0)
    file_type: Optional[str] = None


class AttachmentOut(BaseModel):
    id: int
    file_name: str
    file_url: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== MOVIMIENTOS =====

class LedgerEntryBase(BaseModel):
    amount: Decimal
    concept: str = Field(..., min_length=1, max_length=CONCEPT_MAX_LENGTH)
    bank_account: str = Field(..., min_length=1, max_length=100)
    bank_movement_id: Optional[str] = Field(None, max_length=100)
    entry_type: EntryType
    transaction_date: date
    description: Optional[str] = None
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    por_realizar: bool = False

    @field_validator('concept', 'bank_account')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('bank_movement_id', 'description', 'area', 'subarea')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)


class LedgerEntryCreate(LedgerEntryBase):
    attachments: List[AttachmentCreate] = Field(default_factory=list)


class LedgerEntryUpdate(BaseModel):
    amount: Optional[Decimal] = None
    concept: Optional[str] = Field(None, min_length=1, max_length=CONCEPT_MAX_LENGTH)
    bank_account: Optional[str] = Field(None, min_length=1, max_length=100)
    bank_movement_id: Optional[str] = Field(None, max_length=100)
    entry_type: Optional[EntryType] = None
    transaction_date: Optional[date] = None
    description: Optional[str] = None
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    por_realizar: Optional[bool] = None


class LedgerEntryOut(BaseModel):
    id: int
    internal_id: str
    amount: Decimal
    concept: str
    bank_account: str
    bank_movement_id: Optional[str] = None
    entry_type: str
    transaction_date: date
    description: Optional[str] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    por_realizar: bool
    currency: str
    user_id: int
    username: Optional[str] = None
    attachments: List[AttachmentOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerTotals(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    net: Decimal
    count: int


class LedgerListResponse(BaseModel):
    entries: List[LedgerEntryOut]
    summary: LedgerTotals
    limit: int
    offset: int
    has_more: bool


class LedgerSummary(BaseModel):
    """Totales realizados, pendientes (por realizar) y proyectados."""
    currency: str
    realized: LedgerTotals
    pending: LedgerTotals
    projected: LedgerTotals


class RealizeResponse(BaseModel):
    message: str
    entry: LedgerEntryOut


# ===== FACTURAS MXN =====

class FacturaBase(BaseModel):
    folio: Optional[str] = Field(None, max_length=100)
    uuid: Optional[str] = Field(None, max_length=64)
    rfc_emisor: Optional[str] = Field(None, max_length=20)
    rfc_receptor: Optional[str] = Field(None, max_length=20)
    total: Optional[Decimal] = None
    subtotal: Optional[Decimal] = None
    iva: Optional[Decimal] = None
    fecha_timbrado: Optional[datetime] = None
    file_url: Optional[str] = None
    file_type: Optional[FacturaFileType] = None
    notes: Optional[str] = None

    @field_validator('folio', 'uuid', 'rfc_emisor', 'rfc_receptor', 'file_url', 'notes')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @field_validator('uuid')
    @classmethod
    def upper_uuid(cls, v):
        return v.upper() if v else v


class FacturaCreate(FacturaBase):
    pass


class FacturaUpdate(FacturaBase):
    pass


class FacturaOut(FacturaBase):
    id: int
    ledger_entry_id: int
    file_type: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
