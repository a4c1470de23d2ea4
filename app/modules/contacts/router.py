"""
Router para el módulo de Contactos

Todos los endpoints requieren autenticación. La consulta es compartida;
modificar y eliminar está reservado a quien registró el contacto.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.contacts.models import ContactType, ContactStatus
from app.modules.contacts.service import ContactService
from app.modules.contacts.schemas import ContactCreate, ContactUpdate, ContactOut, ContactSummary
from app.modules.ledger.schemas import AttachmentCreate, AttachmentOut

router = APIRouter(
    prefix="/contacts",
    tags=["Contacts"],
    responses={404: {"description": "Not found"}}
)


# ===== ENDPOINTS PRINCIPALES =====

@router.get("/", response_model=List[ContactOut])
def get_contacts(
    search: Optional[str] = Query(None, description="Búsqueda por nombre, empresa, email, teléfono o RFC"),
    contact_type: Optional[ContactType] = Query(None),
    status_filter: Optional[ContactStatus] = Query(None, alias="status"),
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ContactService(db).get_contacts(
        search,
        contact_type.value if contact_type else None,
        status_filter.value if status_filter else None,
        area, subarea, limit, offset
    )


@router.get("/summary", response_model=ContactSummary)
def get_contacts_summary(db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).get_summary()


@router.get("/{contact_id}", response_model=ContactOut)
def get_contact(contact_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).get_contact(contact_id)


@router.post("/", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def create_contact(contact_data: ContactCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Crear un nuevo contacto

    - **name**, **area** y **subarea**: requeridos
    - **contact_type**: business, client, supplier, partner, prospect o vendor
    - **rfc**: se guarda en mayúsculas
    - **attachments**: archivos ya subidos (URL y metadatos)
    """
    return ContactService(db).create_contact(contact_data, current_user.id)


@router.put("/{contact_id}", response_model=ContactOut)
def update_contact(contact_id: int, contact_update: ContactUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).update_contact(contact_id, contact_update, current_user.id)


@router.delete("/{contact_id}")
def delete_contact(contact_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).delete_contact(contact_id, current_user.id)


# ===== ADJUNTOS =====

@router.post("/{contact_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
def add_contact_attachment(contact_id: int, attachment_data: AttachmentCreate, db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).add_attachment(contact_id, attachment_data, current_user.id)


@router.delete("/{contact_id}/attachments/{attachment_id}")
def delete_contact_attachment(contact_id: int, attachment_id: int, db: Session = Depends(get_db),
                              current_user: User = Depends(AuthDependencies.get_current_user)):
    return ContactService(db).delete_attachment(contact_id, attachment_id, current_user.id)
