"""
Servicio de cotizaciones

Mismas reglas que los libros (signo por tipo, monto distinto de cero,
concepto de hasta 255 caracteres), con moneda por movimiento.
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
from app.modules.ledger.models import Currency, EntryType
from app.modules.ledger.service import totals_from_row
from app.modules.cotizaciones.models import CotizacionEntry, CotizacionAttachment
from app.modules.cotizaciones.schemas import CotizacionCreate, CotizacionUpdate

logger = logging.getLogger(__name__)


class CotizacionService:

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, entry_type=None, currency=None, bank_account=None, start_date=None,
                  end_date=None, area=None, subarea=None, search=None):
        query = self.db.query(CotizacionEntry)
        if entry_type:
            query = query.filter(CotizacionEntry.entry_type == entry_type)
        if currency:
            query = query.filter(CotizacionEntry.currency == currency)
        if bank_account:
            query = query.filter(CotizacionEntry.bank_account == bank_account)
        if start_date:
            query = query.filter(CotizacionEntry.transaction_date >= start_date)
        if end_date:
            query = query.filter(CotizacionEntry.transaction_date <= end_date)
        if area:
            query = query.filter(CotizacionEntry.area == area)
        if subarea:
            query = query.filter(CotizacionEntry.subarea == subarea)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                CotizacionEntry.concept.ilike(term),
                CotizacionEntry.description.ilike(term),
                CotizacionEntry.internal_id.ilike(term)
            ))
        return query

    def _totals_by_currency(self, query) -> List[Dict]:
        rows = query.with_entities(
            CotizacionEntry.currency.label("currency"),
            func.coalesce(func.sum(case(
                (CotizacionEntry.entry_type == EntryType.INCOME.value, CotizacionEntry.amount), else_=0
            )), 0).label("total_income"),
            func.coalesce(func.sum(case(
                (CotizacionEntry.entry_type == EntryType.EXPENSE.value, -CotizacionEntry.amount), else_=0
            )), 0).label("total_expenses"),
            func.count(CotizacionEntry.id).label("count")
        ).group_by(CotizacionEntry.currency).order_by(CotizacionEntry.currency).all()
        return [{"currency": row.currency, **totals_from_row(row)} for row in rows]

    def list_entries(
        self,
        entry_type: Optional[str] = None,
        currency: Optional[str] = None,
        bank_account: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Dict:
        limit = validate_limit(limit, settings.LEDGER_MAX_LIMIT)
        query = self._filtered(entry_type, currency, bank_account, start_date, end_date, area, subarea, search)
        summary = self._totals_by_currency(query)
        total = sum(row["count"] for row in summary)
        entries = query.options(
            selectinload(CotizacionEntry.attachments), selectinload(CotizacionEntry.user)
        ).order_by(
            CotizacionEntry.transaction_date.desc(), CotizacionEntry.id.desc()
        ).offset(offset).limit(limit).all()
        return {
            "entries": entries,
            "summary": summary,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(entries) < total,
        }

    def get_summary(self) -> Dict:
        by_currency = self._totals_by_currency(self.db.query(CotizacionEntry))
        net = {row["currency"]: row["net"] for row in by_currency}
        return {
            "by_currency": by_currency,
            "total_entries": sum(row["count"] for row in by_currency),
            "net_usd": net.get(Currency.USD.value, Decimal("0")),
            "net_mxn": net.get(Currency.MXN.value, Decimal("0")),
        }

    def get_entry(self, entry_id: int) -> CotizacionEntry:
        entry = self.db.query(CotizacionEntry).options(
            selectinload(CotizacionEntry.attachments)
        ).filter(CotizacionEntry.id == entry_id).first()
        if not entry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cotización no encontrada"
            )
        return entry

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad al {operation} cotización: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Conflicto de integridad al {operation} la cotización"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al {operation} cotización: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al {operation} la cotización: {str(e)}"
            )

    def create_entry(self, entry_data: CotizacionCreate, user_id: int) -> CotizacionEntry:
        data = entry_data.model_dump(exclude={"attachments"})
        data["entry_type"] = entry_data.entry_type.value
        data["currency"] = entry_data.currency.value
        data["amount"] = signed_amount(entry_data.amount, data["entry_type"])

        entry = CotizacionEntry(**data, internal_id=generate_internal_id("COT"), user_id=user_id)
        for attachment in entry_data.attachments:
            entry.attachments.append(CotizacionAttachment(**attachment.model_dump()))
        self.db.add(entry)
        self._commit("crear")
        self.db.refresh(entry)
        return entry

    def update_entry(self, entry_id: int, entry_update: CotizacionUpdate) -> CotizacionEntry:
        entry = self.get_entry(entry_id)
        data = entry_update.model_dump(exclude_unset=True, exclude_none=True)

        for field in ("concept", "bank_account"):
            if field in data:
                data[field] = data[field].strip()
                if not data[field]:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede estar vacío"
                    )
        if "currency" in data:
            data["currency"] = entry_update.currency.value
        entry_type = entry_update.entry_type.value if entry_update.entry_type else entry.entry_type
        data["entry_type"] = entry_type
        data["amount"] = signed_amount(Decimal(data.get("amount", entry.amount)), entry_type)

        for field, value in data.items():
            setattr(entry, field, value)
        self._commit("actualizar")
        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry_id: int) -> Dict[str, str]:
        entry = self.get_entry(entry_id)
        self.db.delete(entry)
        self._commit("eliminar")
        return {"message": "Cotización eliminada exitosamente"}
