"""
Servicio de Áreas y Subáreas

Las áreas se referencian por nombre desde tareas, tareas personales,
contactos, documentos, libros USD/MXN, cotizaciones y proyectos. Borrar un
área o subárea en uso es un conflicto; renombrarla actualiza esas referencias
en la misma transacción.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.modules.areas.models import Area, Subarea
from app.modules.areas.schemas import AreaCreate, AreaUpdate, SubareaCreate, SubareaUpdate
from app.modules.contacts.models import Contact
from app.modules.cotizaciones.models import CotizacionEntry
from app.modules.documents.models import Document
from app.modules.ledger.models import LedgerEntry, LedgerEntryMxn
from app.modules.personal_tasks.models import PersonalTask
from app.modules.projects.models import Project
from app.modules.tasks.models import Task

logger = logging.getLogger(__name__)


# Módulos que muestran contenido por área (clave de respuesta, modelo)
CONTENT_MODELS = (
    ("tasks", Task),
    ("personal_tasks", PersonalTask),
    ("contacts", Contact),
    ("documents", Document),
    ("ledger_entries", LedgerEntry),
    ("ledger_entries_mxn", LedgerEntryMxn),
    ("cotizaciones", CotizacionEntry),
)

REFERENCING_MODELS = tuple(model for _, model in CONTENT_MODELS) + (Project,)


class AreaService:

    def __init__(self, db: Session):
        self.db = db

    def _run(self, operation: str, fn):
        try:
            result = fn()
            self.db.commit()
            return result
        except HTTPException:
            self.db.rollback()
            raise
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

    # ===== REFERENCIAS =====

    def count_references(self, area_name: str, subarea_name: Optional[str] = None) -> Dict[str, int]:
        counts = {}
        for model in REFERENCING_MODELS:
            query = self.db.query(model).filter(model.area == area_name)
            if subarea_name is not None:
                query = query.filter(model.subarea == subarea_name)
            counts[model.__tablename__] = query.count()
        return counts

    def _check_unused(self, area_name: str, subarea_name: Optional[str] = None):
        references = {table: count for table, count in self.count_references(area_name, subarea_name).items() if count}
        if references:
            label = f"{area_name} / {subarea_name}" if subarea_name else area_name
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "error": f"No se puede eliminar '{label}': tiene registros asociados",
                    "details": references
                }
            )

    def _rename_references(self, old_area: str, new_area: str,
                           old_subarea: Optional[str] = None, new_subarea: Optional[str] = None):
        for model in REFERENCING_MODELS:
            query = self.db.query(model).filter(model.area == old_area)
            if old_subarea is not None:
                query = query.filter(model.subarea == old_subarea)
                values = {model.area: new_area, model.subarea: new_subarea}
            else:
                values = {model.area: new_area}
            query.update(values, synchronize_session=False)

    # ===== ÁREAS =====

    def get_areas(self) -> List[Area]:
        return self.db.query(Area).options(selectinload(Area.subareas)).order_by(Area.name).all()

    def get_area(self, area_id: int) -> Area:
        area = self.db.query(Area).options(selectinload(Area.subareas)).filter(Area.id == area_id).first()
        if not area:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Área no encontrada"
            )
        return area

    def _check_area_name(self, name: str, exclude_id: Optional[int] = None):
        query = self.db.query(Area.id).filter(Area.name == name)
        if exclude_id:
            query = query.filter(Area.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un área con el nombre '{name}'"
            )

    def create_area(self, area_data: AreaCreate) -> Area:
        def operation():
            self._check_area_name(area_data.name)
            area = Area(**area_data.model_dump())
            self.db.add(area)
            self.db.flush()
            return area.id

        area_id = self._run("crear el área", operation)
        logger.info(f"Área '{area_data.name}' creada")
        return self.get_area(area_id)

    def update_area(self, area_id: int, area_update: AreaUpdate) -> Area:
        def operation():
            area = self.get_area(area_id)
            data = area_update.model_dump(exclude_unset=True)
            new_name = data.get("name")
            if new_name and new_name != area.name:
                self._check_area_name(new_name, exclude_id=area.id)
                self._rename_references(area.name, new_name)
                logger.info(f"Área '{area.name}' renombrada a '{new_name}'")
            elif "name" in data and not new_name:
                del data["name"]
            for field, value in data.items():
                setattr(area, field, value)

        self._run("actualizar el área", operation)
        self.db.expire_all()
        return self.get_area(area_id)

    def delete_area(self, area_id: int) -> Dict[str, str]:
        def operation():
            area = self.get_area(area_id)
            self._check_unused(area.name)
            self.db.delete(area)
            return area.name

        name = self._run("eliminar el área", operation)
        logger.info(f"Área '{name}' eliminada")
        return {"message": "Área eliminada exitosamente"}

    # ===== SUBÁREAS =====

    def get_subarea(self, subarea_id: int) -> Subarea:
        subarea = self.db.get(Subarea, subarea_id)
        if not subarea:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Subárea no encontrada"
            )
        return subarea

    def _check_subarea_name(self, area_id: int, name: str, exclude_id: Optional[int] = None):
        query = self.db.query(Subarea.id).filter(Subarea.area_id == area_id, Subarea.name == name)
        if exclude_id:
            query = query.filter(Subarea.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe la subárea '{name}' en esta área"
            )

    def create_subarea(self, subarea_data: SubareaCreate) -> Subarea:
        def operation():
            area = self.get_area(subarea_data.area_id)
            self._check_subarea_name(area.id, subarea_data.name)
            subarea = Subarea(**subarea_data.model_dump())
            self.db.add(subarea)
            self.db.flush()
            return subarea.id

        subarea_id = self._run("crear la subárea", operation)
        return self.get_subarea(subarea_id)

    def update_subarea(self, subarea_id: int, subarea_update: SubareaUpdate) -> Subarea:
        """Mover o renombrar una subárea arrastra los registros que la usan."""
        def operation():
            subarea = self.get_subarea(subarea_id)
            data = subarea_update.model_dump(exclude_unset=True)
            old_area_name = subarea.area.name
            target_area = self.get_area(data["area_id"]) if data.get("area_id") else subarea.area
            new_name = data.get("name") or subarea.name

            if target_area.id != subarea.area_id or new_name != subarea.name:
                self._check_subarea_name(target_area.id, new_name, exclude_id=subarea.id)
                self._rename_references(old_area_name, target_area.name, subarea.name, new_name)

            subarea.area_id = target_area.id
            subarea.name = new_name
            if "description" in data:
                subarea.description = data["description"]

        self._run("actualizar la subárea", operation)
        self.db.expire_all()
        return self.get_subarea(subarea_id)

    def delete_subarea(self, subarea_id: int) -> Dict[str, str]:
        def operation():
            subarea = self.get_subarea(subarea_id)
            self._check_unused(subarea.area.name, subarea.name)
            self.db.delete(subarea)

        self._run("eliminar la subárea", operation)
        return {"message": "Subárea eliminada exitosamente"}

    # ===== CONTENIDO =====

    def get_content(self, user_id: int, area_name: str, subarea_name: Optional[str] = None,
                    limit: int = 10) -> Dict:
        """Conteos y registros recientes del usuario en cada módulo para un área/subárea."""
        counts = {}
        content = {}
        for key, model in CONTENT_MODELS:
            query = self.db.query(model).filter(model.user_id == user_id, model.area == area_name)
            if subarea_name is not None:
                query = query.filter(model.subarea == subarea_name)
            counts[key] = query.count()
            content[key] = query.order_by(model.created_at.desc(), model.id.desc()).limit(limit).all()
        counts["total"] = sum(counts.values())
        return {"area": area_name, "subarea": subarea_name, "counts": counts, "content": content}
