from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.documents.models import DocumentStatus
from app.modules.documents.service import DocumentService
from app.modules.documents.schemas import DocumentCreate, DocumentUpdate, DocumentOut, DocumentSummary

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("/", response_model=List[DocumentOut])
def get_documents(
    search: Optional[str] = Query(None),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return DocumentService(db).get_documents(
        search, status_filter.value if status_filter else None, area, subarea, limit, offset
    )


@router.get("/summary", response_model=DocumentSummary)
def get_documents_summary(db: Session = Depends(get_db),
                          current_user: User = Depends(AuthDependencies.get_current_user)):
    return DocumentService(db).get_summary()


@router.get("/{document_id}", response_model=DocumentOut)
def get_document(document_id: int, db: Session = Depends(get_db),
                 current_user: User = Depends(AuthDependencies.get_current_user)):
    return DocumentService(db).get_document(document_id)


@router.post("/", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def create_document(document_data: DocumentCreate, db: Session = Depends(get_db),
                    current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Registrar documento

    - **attachments**: al menos un archivo ya subido
    - **version**: por defecto "1.0"
    """
    return DocumentService(db).create_document(document_data, current_user.id)


@router.put("/{document_id}", response_model=DocumentOut)
def update_document(document_id: int, document_update: DocumentUpdate, db: Session = Depends(get_db),
                    current_user: User = Depends(AuthDependencies.get_current_user)):
    return DocumentService(db).update_document(document_id, document_update, current_user.id)


@router.delete("/{document_id}")
def delete_document(document_id: int, db: Session = Depends(get_db),
                    current_user: User = Depends(AuthDependencies.get_current_user)):
    return DocumentService(db).delete_document(document_id, current_user.id)
