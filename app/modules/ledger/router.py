"""
Routers de los libros de movimientos

/ledger      -> libro en dólares
/ledger-mxn  -> libro en pesos, con facturas
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.ledger.models import Currency, EntryType
from app.modules.ledger.service import LedgerService, FacturaService
from app.modules.ledger.schemas import (
    LedgerEntryCreate, LedgerEntryUpdate, LedgerEntryOut, LedgerListResponse, LedgerSummary,
    RealizeResponse, AttachmentCreate, AttachmentOut, FacturaCreate, FacturaUpdate, FacturaOut
)


def build_ledger_router(prefix: str, currency: Currency) -> APIRouter:
    """Mismas rutas para cada moneda; solo cambia el modelo detrás del servicio."""
    router = APIRouter(prefix=prefix, tags=[f"Ledger {currency.value}"])

    def get_service(db: Session = Depends(get_db)) -> LedgerService:
        return LedgerService(db, currency)

    @router.get("/", response_model=LedgerListResponse)
    def list_entries(
        entry_type: Optional[EntryType] = Query(None),
        bank_account: Optional[str] = Query(None),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        area: Optional[str] = Query(None),
        subarea: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
        limit: int = Query(50),
        offset: int = Query(0, ge=0),
        service: LedgerService = Depends(get_service),
        current_user: User = Depends(AuthDependencies.get_current_user)
    ):
        return service.list_entries(
            entry_type.value if entry_type else None, bank_account, start_date, end_date,
            area, subarea, search, limit, offset
        )

    @router.get("/summary", response_model=LedgerSummary)
    def get_summary(
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        service: LedgerService = Depends(get_service),
        current_user: User = Depends(AuthDependencies.get_current_user)
    ):
        """Totales realizados, por realizar y proyectados."""
        return service.get_summary(start_date, end_date)

    @router.get("/{entry_id}", response_model=LedgerEntryOut)
    def get_entry(entry_id: int, service: LedgerService = Depends(get_service),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.get_entry(entry_id)

    @router.post("/", response_model=LedgerEntryOut, status_code=status.HTTP_201_CREATED)
    def create_entry(entry_data: LedgerEntryCreate, service: LedgerService = Depends(get_service),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
        """
        Registrar movimiento

        - Los egresos se guardan en negativo y los ingresos en positivo
        - Un monto de cero se rechaza con 400
        """
        return service.create_entry(entry_data, current_user.id)

    @router.put("/{entry_id}", response_model=LedgerEntryOut)
    def update_entry(entry_id: int, entry_update: LedgerEntryUpdate, service: LedgerService = Depends(get_service),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.update_entry(entry_id, entry_update)

    @router.delete("/{entry_id}")
    def delete_entry(entry_id: int, service: LedgerService = Depends(get_service),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.delete_entry(entry_id)

    @router.put("/{entry_id}/realize", response_model=RealizeResponse)
    def realize_entry(entry_id: int, service: LedgerService = Depends(get_service),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
        entry = service.realize_entry(entry_id)
        return {"message": "Movimiento marcado como realizado", "entry": entry}

    # ===== ADJUNTOS =====

    @router.get("/{entry_id}/attachments", response_model=List[AttachmentOut])
    def list_attachments(entry_id: int, service: LedgerService = Depends(get_service),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.list_attachments(entry_id)

    @router.post("/{entry_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
    def add_attachment(entry_id: int, attachment_data: AttachmentCreate,
                       service: LedgerService = Depends(get_service),
                       current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.add_attachment(entry_id, attachment_data)

    @router.delete("/attachments/{attachment_id}")
    def delete_attachment(attachment_id: int, service: LedgerService = Depends(get_service),
                          current_user: User = Depends(AuthDependencies.get_current_user)):
        return service.delete_attachment(attachment_id)

    return router


ledger_router = build_ledger_router("/ledger", Currency.USD)
ledger_mxn_router = build_ledger_router("/ledger-mxn", Currency.MXN)


# ===== FACTURAS MXN =====

@ledger_mxn_router.get("/{entry_id}/facturas", response_model=List[FacturaOut])
def list_facturas(entry_id: int, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return FacturaService(db).list_facturas(entry_id, current_user.id)


@ledger_mxn_router.post("/{entry_id}/facturas", response_model=FacturaOut, status_code=status.HTTP_201_CREATED)
def create_factura(entry_id: int, factura_data: FacturaCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return FacturaService(db).create_factura(entry_id, factura_data, current_user.id)


@ledger_mxn_router.put("/facturas/{factura_id}", response_model=FacturaOut)
def update_factura(factura_id: int, factura_data: FacturaUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return FacturaService(db).update_factura(factura_id, factura_data, current_user.id)


@ledger_mxn_router.delete("/facturas/{factura_id}")
def delete_factura(factura_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return FacturaService(db).delete_factura(factura_id, current_user.id)
