"""
Servicio de Documentos

Un documento agrupa uno o más archivos (URL + metadatos) bajo un nombre,
versión y clasificación por área/subárea. Se comparten para lectura; solo
quien los registró los modifica.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, case, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.utils import generate_internal_id
from app.modules.documents.models import Document, DocumentAttachment, DocumentStatus
from app.modules.documents.schemas import DocumentCreate, DocumentUpdate

logger = logging.getLogger(__name__)


class DocumentService:

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, operation: str):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad al {operation}: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Conflicto de integridad al {operation}"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al {operation}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al {operation}: {str(e)}"
            )

    def get_documents(
        self,
        search: Optional[str] = None,
        status_filter: Optional[str] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Document]:
        query = self.db.query(Document).options(
            selectinload(Document.attachments), selectinload(Document.user)
        )
        if status_filter:
            query = query.filter(Document.status == status_filter)
        if area:
            query = query.filter(Document.area == area)
        if subarea:
            query = query.filter(Document.subarea == subarea)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Document.document_name.ilike(term),
                Document.description.ilike(term),
                Document.internal_id.ilike(term)
            ))
        return query.order_by(Document.created_at.desc(), Document.id.desc()).offset(offset).limit(limit).all()

    def get_summary(self) -> Dict[str, int]:
        def count_status(value):
            return func.coalesce(func.sum(case((Document.status == value, 1), else_=0)), 0)

        row = self.db.query(
            func.count(Document.id).label("total"),
            count_status(DocumentStatus.ACTIVE.value).label("active"),
            count_status(DocumentStatus.DRAFT.value).label("draft"),
            count_status(DocumentStatus.ARCHIVED.value).label("archived"),
            func.count(func.distinct(Document.area)).label("areas"),
            func.count(func.distinct(Document.subarea)).label("subareas")
        ).one()
        return {
            "total_documents": row.total or 0,
            "active_documents": int(row.active or 0),
            "draft_documents": int(row.draft or 0),
            "archived_documents": int(row.archived or 0),
            "total_areas": row.areas or 0,
            "total_subareas": row.subareas or 0,
        }

    def get_document(self, document_id: int) -> Document:
        document = self.db.query(Document).options(
            selectinload(Document.attachments)
        ).filter(Document.id == document_id).first()
        if not document:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Documento no encontrado"
            )
        return document

    def _owned_document(self, document_id: int, user_id: int) -> Document:
        document = self.get_document(document_id)
        if document.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo quien registró el documento puede modificarlo"
            )
        return document

    def create_document(self, document_data: DocumentCreate, user_id: int) -> Document:
        data = document_data.model_dump(exclude={"attachments"})
        data["status"] = document_data.status.value

        document = Document(**data, internal_id=generate_internal_id("DOC"), user_id=user_id)
        for attachment in document_data.attachments:
            document.attachments.append(DocumentAttachment(**attachment.model_dump()))
        self.db.add(document)
        self._commit("crear el documento")
        self.db.refresh(document)
        logger.info(f"Documento {document.internal_id} creado con {len(document.attachments)} archivo(s)")
        return document

    def update_document(self, document_id: int, document_update: DocumentUpdate, user_id: int) -> Document:
        document = self._owned_document(document_id, user_id)
        data = document_update.model_dump(exclude_unset=True)
        if not data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No hay campos para actualizar"
            )

        for field in ("document_name", "area", "subarea", "version"):
            if field in data:
                value = (data[field] or "").strip()
                if not value:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede estar vacío"
                    )
                data[field] = value
        if "status" in data:
            if data["status"] is None:
                del data["status"]
            else:
                data["status"] = data["status"].value
        if "tags" in data and data["tags"] is None:
            data["tags"] = []

        for field, value in data.items():
            setattr(document, field, value)
        self._commit("actualizar el documento")
        self.db.refresh(document)
        return document

    def delete_document(self, document_id: int, user_id: int) -> Dict[str, str]:
        document = self._owned_document(document_id, user_id)
        self.db.delete(document)
        self._commit("eliminar el documento")
        return {"message": "Documento eliminado exitosamente"}
