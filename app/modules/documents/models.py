import enum

from sqlalchemy import Column, String, Integer, Text, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin, AreaMixin
from app.modules.ledger.models import AttachmentColumnsMixin


class DocumentStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DRAFT = "draft"


class Document(Base, BaseMixin, AreaMixin):
    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'archived', 'draft')", name="ck_documents_status"),
    )

    internal_id = Column(String(50), unique=True, nullable=False, index=True)
    document_name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.ACTIVE.value, index=True)
    version = Column(String(20), nullable=False, default="1.0")
    tags = Column(JSON, nullable=False, default=list)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    user = relationship("User")
    attachments = relationship(
        "DocumentAttachment", back_populates="document",
        cascade="all, delete-orphan", order_by="DocumentAttachment.id"
    )

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def attachment_count(self) -> int:
        return len(self.attachments)


class DocumentAttachment(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "document_attachments"

    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)

    document = relationship("Document", back_populates="attachments")
