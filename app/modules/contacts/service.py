"""
Servicios de negocio para el módulo de Contactos

- CRUD con filtros por texto, tipo, estado, área y subárea
- Resumen por tipo y estado
- Adjuntos (solo URL y metadatos)

Los contactos son visibles para todos los usuarios; solo quien los registró
puede modificarlos o eliminarlos.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.utils import generate_internal_id
from app.modules.contacts.models import Contact, ContactAttachment, ContactType, ContactStatus
from app.modules.contacts.schemas import ContactCreate, ContactUpdate
from app.modules.ledger.schemas import AttachmentCreate

logger = logging.getLogger(__name__)


class ContactService:
    """Servicio principal para gestión de contactos"""

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

    def get_contacts(
        self,
        search: Optional[str] = None,
        contact_type: Optional[str] = None,
        status_filter: Optional[str] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Contact]:
        query = self.db.query(Contact).options(
            selectinload(Contact.attachments), selectinload(Contact.user)
        )
        if contact_type:
            query = query.filter(Contact.contact_type == contact_type)
        if status_filter:
            query = query.filter(Contact.status == status_filter)
        if area:
            query = query.filter(Contact.area == area)
        if subarea:
            query = query.filter(Contact.subarea == subarea)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Contact.name.ilike(term),
                Contact.company.ilike(term),
                Contact.email.ilike(term),
                Contact.phone.ilike(term),
                Contact.rfc.ilike(term),
                Contact.internal_id.ilike(term)
            ))
        return query.order_by(Contact.name, Contact.id).offset(offset).limit(limit).all()

    def get_summary(self) -> Dict:
        """Totales por tipo y por estado; los valores sin registros aparecen en cero."""
        by_type = {t.value: 0 for t in ContactType}
        for contact_type, count in self.db.query(Contact.contact_type, func.count(Contact.id)).group_by(
            Contact.contact_type
        ).all():
            by_type[contact_type] = count

        by_status = {s.value: 0 for s in ContactStatus}
        for contact_status, count in self.db.query(Contact.status, func.count(Contact.id)).group_by(
            Contact.status
        ).all():
            by_status[contact_status] = count

        return {"total": sum(by_type.values()), "by_type": by_type, "by_status": by_status}

    def get_contact(self, contact_id: int) -> Contact:
        contact = self.db.query(Contact).options(
            selectinload(Contact.attachments)
        ).filter(Contact.id == contact_id).first()
        if not contact:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Contacto no encontrado"
            )
        return contact

    def _owned_contact(self, contact_id: int, user_id: int) -> Contact:
        contact = self.get_contact(contact_id)
        if contact.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo quien registró el contacto puede modificarlo"
            )
        return contact

    def create_contact(self, contact_data: ContactCreate, user_id: int) -> Contact:
        """Crear un nuevo contacto con sus adjuntos iniciales"""
        data = contact_data.model_dump(exclude={"attachments"})
        data["contact_type"] = contact_data.contact_type.value
        data["status"] = contact_data.status.value
        if data.get("email"):
            data["email"] = str(data["email"])

        contact = Contact(**data, internal_id=generate_internal_id("CON"), user_id=user_id)
        for attachment in contact_data.attachments:
            contact.attachments.append(ContactAttachment(**attachment.model_dump()))
        self.db.add(contact)
        self._commit("crear el contacto")
        self.db.refresh(contact)
        logger.info(f"Contacto {contact.internal_id} creado por usuario {user_id}")
        return contact

    def update_contact(self, contact_id: int, contact_update: ContactUpdate, user_id: int) -> Contact:
        contact = self._owned_contact(contact_id, user_id)
        data = contact_update.model_dump(exclude_unset=True)
        if not data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No hay campos para actualizar"
            )

        for field in ("name", "area", "subarea"):
            if field in data:
                value = (data[field] or "").strip()
                if not value:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede estar vacío"
                    )
                data[field] = value

        for field in ("contact_type", "status"):
            if data.get(field) is not None:
                data[field] = data[field].value
            elif field in data:
                del data[field]
        if data.get("email"):
            data["email"] = str(data["email"])
        if "tags" in data and data["tags"] is None:
            data["tags"] = []

        for field, value in data.items():
            setattr(contact, field, value)
        self._commit("actualizar el contacto")
        self.db.refresh(contact)
        return contact

    def delete_contact(self, contact_id: int, user_id: int) -> Dict[str, str]:
        contact = self._owned_contact(contact_id, user_id)
        internal_id = contact.internal_id
        self.db.delete(contact)
        self._commit("eliminar el contacto")
        logger.info(f"Contacto {internal_id} eliminado por usuario {user_id}")
        return {"message": "Contacto eliminado exitosamente"}

    # ===== ADJUNTOS =====

    def add_attachment(self, contact_id: int, attachment_data: AttachmentCreate, user_id: int) -> ContactAttachment:
        contact = self._owned_contact(contact_id, user_id)
        attachment = ContactAttachment(contact_id=contact.id, **attachment_data.model_dump())
        self.db.add(attachment)
        self._commit("agregar el adjunto")
        self.db.refresh(attachment)
        return attachment

    def delete_attachment(self, contact_id: int, attachment_id: int, user_id: int) -> Dict[str, str]:
        contact = self._owned_contact(contact_id, user_id)
        attachment = self.db.query(ContactAttachment).filter(
            ContactAttachment.id == attachment_id,
            ContactAttachment.contact_id == contact.id
        ).first()
        if not attachment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Adjunto no encontrado"
            )
        self.db.delete(attachment)
        self._commit("eliminar el adjunto")
        return {"message": "Adjunto eliminado exitosamente"}
