"""
Servicio de los libros de movimientos USD y MXN

Un mismo servicio atiende ambos libros; la moneda decide el modelo, la tabla
de adjuntos y el prefijo del id interno (TXN para USD, MXN para pesos).
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.common.utils import generate_internal_id
from app.common.validators import signed_amount, validate_limit
from app.modules.ledger.models import (
    LedgerEntry, LedgerAttachment, LedgerEntryMxn, LedgerAttachmentMxn, LedgerFacturaMxn,
    Currency, EntryType
)
from app.modules.ledger.schemas import (
    LedgerEntryCreate, LedgerEntryUpdate, AttachmentCreate, FacturaCreate, FacturaUpdate
)

logger = logging.getLogger(__name__)


LEDGER_MODELS = {
    Currency.USD: (LedgerEntry, LedgerAttachment, "TXN"),
    Currency.MXN: (LedgerEntryMxn, LedgerAttachmentMxn, "MXN"),
}


def totals_from_row(row) -> Dict:
    income = Decimal(str(row.total_income or 0))
    expenses = Decimal(str(row.total_expenses or 0))
    return {
        "total_income": income,
        "total_expenses": expenses,
        "net": income - expenses,
        "count": int(row.count or 0),
    }


class LedgerService:

    def __init__(self, db: Session, currency: Currency):
        self.db = db
        self.currency = currency
        self.model, self.attachment_model, self.id_prefix = LEDGER_MODELS[currency]

    # ===== CONSULTAS =====

    def _filtered(self, entry_type=None, bank_account=None, start_date=None, end_date=None,
                  area=None, subarea=None, search=None, por_realizar=None):
        model = self.model
        query = self.db.query(model)
        if entry_type:
            query = query.filter(model.entry_type == entry_type)
        if bank_account:
            query = query.filter(model.bank_account == bank_account)
        if start_date:
            query = query.filter(model.transaction_date >= start_date)
        if end_date:
            query = query.filter(model.transaction_date <= end_date)
        if area:
            query = query.filter(model.area == area)
        if subarea:
            query = query.filter(model.subarea == subarea)
        if por_realizar is not None:
            query = query.filter(model.por_realizar == por_realizar)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                model.concept.ilike(term),
                model.description.ilike(term),
                model.internal_id.ilike(term),
                model.bank_movement_id.ilike(term)
            ))
        return query

    def _totals(self, query) -> Dict:
        model = self.model
        row = query.with_entities(
            func.coalesce(func.sum(case((model.entry_type == EntryType.INCOME.value, model.amount), else_=0)), 0)
            .label("total_income"),
            func.coalesce(func.sum(case((model.entry_type == EntryType.EXPENSE.value, -model.amount), else_=0)), 0)
            .label("total_expenses"),
            func.count(model.id).label("count")
        ).one()
        return totals_from_row(row)

    def list_entries(
        self,
        entry_type: Optional[str] = None,
        bank_account: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Dict:
        """Movimientos filtrados con totales del mismo filtro."""
        limit = validate_limit(limit, settings.LEDGER_MAX_LIMIT)
        query = self._filtered(entry_type, bank_account, start_date, end_date, area, subarea, search)
        summary = self._totals(query)
        entries = query.options(
            selectinload(self.model.attachments), selectinload(self.model.user)
        ).order_by(
            self.model.transaction_date.desc(), self.model.created_at.desc(), self.model.id.desc()
        ).offset(offset).limit(limit).all()

        return {
            "entries": entries,
            "summary": summary,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(entries) < summary["count"],
        }

    def get_summary(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        realized = self._totals(self._filtered(start_date=start_date, end_date=end_date, por_realizar=False))
        pending = self._totals(self._filtered(start_date=start_date, end_date=end_date, por_realizar=True))
        projected = {key: realized[key] + pending[key] for key in realized}
        return {
            "currency": self.currency.value,
            "realized": realized,
            "pending": pending,
            "projected": projected,
        }

    def get_entry(self, entry_id: int):
        entry = self.db.query(self.model).options(
            selectinload(self.model.attachments)
        ).filter(self.model.id == entry_id).first()
        if not entry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Movimiento {self.currency.value} no encontrado"
            )
        return entry

    # ===== MUTACIONES =====

    def _commit(self, operation: str, before_commit=None):
        try:
            if before_commit:
                before_commit()
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad en {operation} ({self.currency.value}): {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Conflicto de integridad al {operation}"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al {operation} ({self.currency.value}): {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al {operation}: {str(e)}"
            )

    def create_entry(self, entry_data: LedgerEntryCreate, user_id: int):
        data = entry_data.model_dump(exclude={"attachments"})
        data["entry_type"] = entry_data.entry_type.value
        data["amount"] = signed_amount(entry_data.amount, data["entry_type"])

        entry = self.model(**data, internal_id=generate_internal_id(self.id_prefix), user_id=user_id)
        for attachment in entry_data.attachments:
            entry.attachments.append(self.attachment_model(**attachment.model_dump()))
        self.db.add(entry)
        self._commit("crear el movimiento")
        self.db.refresh(entry)
        logger.info(f"Movimiento {entry.internal_id} creado: {entry.amount} {self.currency.value}")
        return entry

    def update_entry(self, entry_id: int, entry_update: LedgerEntryUpdate):
        entry = self.get_entry(entry_id)
        data = entry_update.model_dump(exclude_unset=True)

        for field in ("concept", "bank_account"):
            if field in data:
                value = (data[field] or "").strip()
                if not value:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede estar vacío"
                    )
                data[field] = value

        entry_type = data.get("entry_type") or entry.entry_type
        if isinstance(entry_type, EntryType):
            entry_type = entry_type.value
        data["entry_type"] = entry_type
        amount = data.get("amount", entry.amount)
        data["amount"] = signed_amount(Decimal(amount), entry_type)

        for field, value in data.items():
            setattr(entry, field, value)
        sync = (lambda: self._sync_linked_payments(entry)) if self.currency == Currency.MXN else None
        self._commit("actualizar el movimiento", before_commit=sync)
        self.db.refresh(entry)
        return entry

    def _sync_linked_payments(self, entry) -> None:
        """Recalcula amount_paid / payment_status del pedido que usa este movimiento como pago."""
        from app.modules.ventas.payments import PaymentService
        from app.modules.ecommerce.payments import EcommercePaymentService

        self.db.flush()
        PaymentService(self.db).sync_entry(entry)
        EcommercePaymentService(self.db).sync_entry(entry)

    def _is_linked_payment(self, entry) -> bool:
        from app.modules.ventas.models import PedidoPayment
        from app.modules.ecommerce.models import EcommercePedidoPayment

        return any(
            self.db.query(model.id).filter(model.ledger_entry_id == entry.id).first()
            for model in (PedidoPayment, EcommercePedidoPayment)
        )

    def delete_entry(self, entry_id: int) -> Dict[str, str]:
        entry = self.get_entry(entry_id)
        if self.currency == Currency.MXN and self._is_linked_payment(entry):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El movimiento está ligado como pago de un pedido; desligue el pago primero"
            )
        self.db.delete(entry)
        self._commit("eliminar el movimiento")
        logger.info(f"Movimiento {entry.internal_id} eliminado")
        return {"message": "Movimiento eliminado exitosamente"}

    def realize_entry(self, entry_id: int):
        entry = self.get_entry(entry_id)
        if not entry.por_realizar:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El movimiento ya está realizado"
            )
        entry.por_realizar = False
        self._commit("realizar el movimiento")
        self.db.refresh(entry)
        return entry

    # ===== ADJUNTOS =====

    def list_attachments(self, entry_id: int) -> List:
        return self.get_entry(entry_id).attachments

    def add_attachment(self, entry_id: int, attachment_data: AttachmentCreate):
        entry = self.get_entry(entry_id)
        attachment = self.attachment_model(ledger_entry_id=entry.id, **attachment_data.model_dump())
        self.db.add(attachment)
        self._commit("agregar el adjunto")
        self.db.refresh(attachment)
        return attachment

    def delete_attachment(self, attachment_id: int) -> Dict[str, str]:
        attachment = self.db.get(self.attachment_model, attachment_id)
        if not attachment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Adjunto no encontrado"
            )
        self.db.delete(attachment)
        self._commit("eliminar el adjunto")
        return {"message": "Adjunto eliminado exitosamente"}


class FacturaService:
    """Facturas del libro MXN; solo el dueño del movimiento puede administrarlas."""

    def __init__(self, db: Session):
        self.db = db

    def _owned_entry(self, entry_id: int, user_id: int) -> LedgerEntryMxn:
        entry = self.db.get(LedgerEntryMxn, entry_id)
        if not entry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Movimiento MXN no encontrado"
            )
        if entry.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes permiso para administrar las facturas de este movimiento"
            )
        return entry

    def _owned_factura(self, factura_id: int, user_id: int) -> LedgerFacturaMxn:
        factura = self.db.get(LedgerFacturaMxn, factura_id)
        if not factura:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Factura no encontrada"
            )
        self._owned_entry(factura.ledger_entry_id, user_id)
        return factura

    def _check_uuid(self, uuid: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not uuid:
            return
        query = self.db.query(LedgerFacturaMxn).filter(LedgerFacturaMxn.uuid == uuid)
        if exclude_id:
            query = query.filter(LedgerFacturaMxn.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una factura con el UUID {uuid}"
            )

    def _save(self, factura: LedgerFacturaMxn, operation: str) -> LedgerFacturaMxn:
        try:
            self.db.commit()
            self.db.refresh(factura)
            return factura
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe una factura con ese UUID"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al {operation} factura: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al {operation} factura: {str(e)}"
            )

    def list_facturas(self, entry_id: int, user_id: int) -> List[LedgerFacturaMxn]:
        return self._owned_entry(entry_id, user_id).facturas

    def create_factura(self, entry_id: int, factura_data: FacturaCreate, user_id: int) -> LedgerFacturaMxn:
        entry = self._owned_entry(entry_id, user_id)
        self._check_uuid(factura_data.uuid)
        data = factura_data.model_dump()
        if factura_data.file_type:
            data["file_type"] = factura_data.file_type.value
        factura = LedgerFacturaMxn(ledger_entry_id=entry.id, user_id=user_id, **data)
        self.db.add(factura)
        return self._save(factura, "crear")

    def update_factura(self, factura_id: int, factura_data: FacturaUpdate, user_id: int) -> LedgerFacturaMxn:
        factura = self._owned_factura(factura_id, user_id)
        data = factura_data.model_dump(exclude_unset=True)
        if "uuid" in data:
            self._check_uuid(data["uuid"], exclude_id=factura.id)
        if data.get("file_type"):
            data["file_type"] = factura_data.file_type.value
        for field, value in data.items():
            setattr(factura, field, value)
        return self._save(factura, "actualizar")

    def delete_factura(self, factura_id: int, user_id: int) -> Dict[str, str]:
        factura = self._owned_factura(factura_id, user_id)
        self.db.delete(factura)
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al eliminar factura: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al eliminar factura: {str(e)}"
            )
        return {"message": "Factura eliminada exitosamente"}
