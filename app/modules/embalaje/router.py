from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.embalaje.service import EmbalajeService
from app.modules.embalaje.schemas import (
    EmbalajeBatch, EmbalajeAdjustBatch, EmbalajeInventoryOut, EmbalajeMovementOut, EmbalajeBatchResult
)

router = APIRouter(prefix="/embalaje", tags=["Embalaje"])


@router.get("/inventory", response_model=List[EmbalajeInventoryOut])
def get_embalaje_inventory(
    include_empty: bool = Query(True),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EmbalajeService(db).get_inventory(include_empty)


@router.get("/inventory/movements", response_model=List[EmbalajeMovementOut])
def get_embalaje_movements(
    product_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EmbalajeService(db).get_movements(product_id, limit)


@router.post("/inventory/add", response_model=EmbalajeBatchResult)
def add_embalaje_inventory(batch: EmbalajeBatch, db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    """Entrada de embalaje (lote de partidas)."""
    rows = EmbalajeService(db).add(batch, current_user.id)
    return {"message": "Inventario de embalaje agregado", "inventory": rows}


@router.post("/inventory/remove", response_model=EmbalajeBatchResult)
def remove_embalaje_inventory(batch: EmbalajeBatch, db: Session = Depends(get_db),
                              current_user: User = Depends(AuthDependencies.get_current_user)):
    """Salida de embalaje; solo se puede retirar lo disponible (existencia - apartados)."""
    rows = EmbalajeService(db).remove(batch, current_user.id)
    return {"message": "Inventario de embalaje retirado", "inventory": rows}


@router.post("/inventory/adjust", response_model=EmbalajeBatchResult)
def adjust_embalaje_inventory(batch: EmbalajeAdjustBatch, db: Session = Depends(get_db),
                              current_user: User = Depends(AuthDependencies.get_current_user)):
    rows = EmbalajeService(db).adjust(batch, current_user.id)
    return {"message": "Inventario de embalaje ajustado", "inventory": rows}
