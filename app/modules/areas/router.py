from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.areas.service import AreaService
from app.modules.areas.schemas import (
    AreaCreate, AreaUpdate, AreaOut, SubareaCreate, SubareaUpdate, SubareaOut, AreaContent
)

router = APIRouter(prefix="/areas", tags=["Areas"])


# ===== ÁREAS =====

@router.get("/", response_model=List[AreaOut])
def get_areas(db: Session = Depends(get_db),
              current_user: User = Depends(AuthDependencies.get_current_user)):
    """Todas las áreas con sus subáreas, en orden alfabético."""
    return AreaService(db).get_areas()


@router.get("/{area_id}", response_model=AreaOut)
def get_area(area_id: int, db: Session = Depends(get_db),
             current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).get_area(area_id)


@router.post("/", response_model=AreaOut, status_code=status.HTTP_201_CREATED)
def create_area(area_data: AreaCreate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).create_area(area_data)


@router.put("/{area_id}", response_model=AreaOut)
def update_area(area_id: int, area_update: AreaUpdate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    """Renombrar actualiza el área en todos los registros que la usan."""
    return AreaService(db).update_area(area_id, area_update)


@router.delete("/{area_id}")
def delete_area(area_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    """409 mientras existan registros que usen el área."""
    return AreaService(db).delete_area(area_id)


# ===== SUBÁREAS =====

@router.post("/subareas", response_model=SubareaOut, status_code=status.HTTP_201_CREATED)
def create_subarea(subarea_data: SubareaCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).create_subarea(subarea_data)


@router.put("/subareas/{subarea_id}", response_model=SubareaOut)
def update_subarea(subarea_id: int, subarea_update: SubareaUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).update_subarea(subarea_id, subarea_update)


@router.delete("/subareas/{subarea_id}")
def delete_subarea(subarea_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).delete_subarea(subarea_id)


# ===== CONTENIDO =====

@router.get("/{area_name}/content", response_model=AreaContent)
def get_area_content(area_name: str, limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).get_content(current_user.id, area_name, limit=limit)


@router.get("/{area_name}/subareas/{subarea_name}/content", response_model=AreaContent)
def get_subarea_content(area_name: str, subarea_name: str, limit: int = Query(10, ge=1, le=100),
                        db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return AreaService(db).get_content(current_user.id, area_name, subarea_name, limit)
