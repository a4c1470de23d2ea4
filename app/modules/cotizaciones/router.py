from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.ledger.models import Currency, EntryType
from app.modules.cotizaciones.service import CotizacionService
from app.modules.cotizaciones.schemas import (
    CotizacionCreate, CotizacionUpdate, CotizacionOut, CotizacionListResponse, CotizacionSummary
)

router = APIRouter(prefix="/cotizaciones", tags=["Cotizaciones"])


@router.get("/", response_model=CotizacionListResponse)
def list_cotizaciones(
    entry_type: Optional[EntryType] = Query(None),
    currency: Optional[Currency] = Query(None),
    bank_account: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(50),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return CotizacionService(db).list_entries(
        entry_type.value if entry_type else None,
        currency.value if currency else None,
        bank_account, start_date, end_date, area, subarea, search, limit, offset
    )


@router.get("/summary", response_model=CotizacionSummary)
def get_cotizaciones_summary(db: Session = Depends(get_db),
                             current_user: User = Depends(AuthDependencies.get_current_user)):
    """Totales agrupados por moneda."""
    return CotizacionService(db).get_summary()


@router.get("/{entry_id}", response_model=CotizacionOut)
def get_cotizacion(entry_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return CotizacionService(db).get_entry(entry_id)


@router.post("/", response_model=CotizacionOut, status_code=status.HTTP_201_CREATED)
def create_cotizacion(entry_data: CotizacionCreate, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return CotizacionService(db).create_entry(entry_data, current_user.id)


@router.put("/{entry_id}", response_model=CotizacionOut)
def update_cotizacion(entry_id: int, entry_update: CotizacionUpdate, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return CotizacionService(db).update_entry(entry_id, entry_update)


@router.delete("/{entry_id}")
def delete_cotizacion(entry_id: int, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return CotizacionService(db).delete_entry(entry_id)
