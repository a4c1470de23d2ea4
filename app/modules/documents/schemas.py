from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.common.validators import clean_optional_str
from app.modules.contacts.schemas import clean_tags
from app.modules.documents.models import DocumentStatus
from app.modules.ledger.schemas import AttachmentCreate, AttachmentOut


class DocumentCreate(BaseModel):
    document_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    area: str = Field(..., min_length=1, max_length=100)
    subarea: str = Field(..., min_length=1, max_length=100)
    status: DocumentStatus = DocumentStatus.ACTIVE
    version: str = Field(default="1.0", min_length=1, max_length=20)
    tags: List[str] = Field(default_factory=list)
    attachments: List[AttachmentCreate] = Field(..., min_length=1, description="Al menos un archivo")

    @field_validator('document_name', 'area', 'subarea', 'version')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('description')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, v):
        return clean_tags(v)


class DocumentUpdate(BaseModel):
    document_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    status: Optional[DocumentStatus] = None
    version: Optional[str] = Field(None, max_length=20)
    tags: Optional[List[str]] = None

    @field_validator('description')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, v):
        return clean_tags(v)


class DocumentOut(BaseModel):
    id: int
    internal_id: str
    document_name: str
    description: Optional[str] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    status: str
    version: str
    tags: List[str] = []
    user_id: int
    username: Optional[str] = None
    attachment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []

    class Config:
        from_attributes = True


class DocumentSummary(BaseModel):
    total_documents: int
    active_documents: int
    draft_documents: int
    archived_documents: int
    total_areas: int
    total_subareas: int
