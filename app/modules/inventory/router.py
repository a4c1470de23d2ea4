from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.modules.auth.dependencies import AuthDependencies
from app.dependencies.dbDependecies import get_db
from app.modules.inventory.service import ReservationService
from app.modules.inventory.schemas import ApartadosAudit

inventory_router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
    dependencies=[Depends(AuthDependencies.get_current_user)]
)

@inventory_router.get("/apartados/audit", response_model=ApartadosAudit)
def audit_apartados(db: Session = Depends(get_db)):
    """Compara cada contador apartados contra la suma de sus asignaciones."""
    mismatches = ReservationService(db).audit()
    return ApartadosAudit(consistent=not mismatches, mismatches=mismatches)

@inventory_router.post("/apartados/repair", response_model=ApartadosAudit)
def repair_apartados(db: Session = Depends(get_db)):
    """Recalcula los contadores apartados desalineados."""
    mismatches = ReservationService(db).repair()
    return ApartadosAudit(consistent=True, mismatches=mismatches)
