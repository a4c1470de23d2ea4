"""
Servicio de Proyectos

Un proyecto agrupa tareas existentes (o creadas al vuelo) con fechas propias
para la vista de Gantt. El rango del proyecto cubre siempre las fechas de
todas sus tareas. Los proyectos privados solo los ve su dueño.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.modules.notifications.service import NotificationService
from app.modules.projects.models import Project, ProjectTask, ProjectVisibility
from app.modules.projects.schemas import ProjectCreate, ProjectUpdate, ProjectTaskAdd, ProjectTaskUpdate
from app.modules.tasks.models import Task, TaskStatus
from app.modules.tasks.service import validate_date_range

logger = logging.getLogger(__name__)


class ProjectService:

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

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

    def _visible(self):
        return self.db.query(Project).options(
            selectinload(Project.user),
            selectinload(Project.tasks).selectinload(ProjectTask.task).selectinload(Task.user)
        ).filter(or_(
            Project.visibility == ProjectVisibility.SHARED.value,
            Project.user_id == self.user_id
        ))

    # ===== PROYECTOS =====

    def get_projects(
        self,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        status_filter: Optional[str] = None,
        visibility: Optional[str] = None
    ) -> List[Project]:
        query = self._visible()
        if area:
            query = query.filter(Project.area == area)
        if subarea:
            query = query.filter(Project.subarea == subarea)
        if status_filter:
            query = query.filter(Project.status == status_filter)
        if visibility:
            query = query.filter(Project.visibility == visibility)
        return query.order_by(Project.created_at.desc(), Project.id.desc()).all()

    def get_project(self, project_id: int) -> Project:
        project = self._visible().filter(Project.id == project_id).first()
        if not project:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Proyecto no encontrado"
            )
        return project

    def _owned_project(self, project_id: int) -> Project:
        project = self.get_project(project_id)
        if project.user_id != self.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo el dueño del proyecto puede modificarlo"
            )
        return project

    def create_project(self, project_data: ProjectCreate) -> Project:
        def operation():
            data = project_data.model_dump()
            data["status"] = project_data.status.value
            data["visibility"] = project_data.visibility.value
            project = Project(**data, user_id=self.user_id)
            self.db.add(project)
            self.db.flush()
            return project.id

        project_id = self._run("crear el proyecto", operation)
        logger.info(f"Proyecto {project_id} creado por usuario {self.user_id}")
        return self.get_project(project_id)

    def update_project(self, project_id: int, project_update: ProjectUpdate) -> Project:
        def operation():
            project = self._owned_project(project_id)
            data = project_update.model_dump(exclude_unset=True)
            for field in ("name", "area"):
                if field in data:
                    value = (data[field] or "").strip()
                    if not value:
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"El campo {field} no puede estar vacío"
                        )
                    data[field] = value
            for field in ("status", "visibility"):
                if data.get(field) is not None:
                    data[field] = data[field].value
                elif field in data:
                    del data[field]
            validate_date_range(data.get("start_date", project.start_date), data.get("end_date", project.end_date))
            for field, value in data.items():
                setattr(project, field, value)

        self._run("actualizar el proyecto", operation)
        self.db.expire_all()
        return self.get_project(project_id)

    def delete_project(self, project_id: int) -> Dict[str, str]:
        def operation():
            self.db.delete(self._owned_project(project_id))

        self._run("eliminar el proyecto", operation)
        return {"message": "Proyecto eliminado exitosamente"}

    # ===== TAREAS DEL PROYECTO =====

    def get_project_tasks(self, project_id: int) -> List[ProjectTask]:
        return list(self.get_project(project_id).tasks)

    def _link(self, project_id: int, task_id: int) -> ProjectTask:
        link = self.db.query(ProjectTask).filter(
            ProjectTask.project_id == project_id, ProjectTask.task_id == task_id
        ).first()
        if not link:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="La tarea no pertenece al proyecto"
            )
        return link

    def _recalculate_range(self, project: Project):
        """Ajusta el rango del proyecto al mínimo inicio y máximo fin de sus tareas."""
        self.db.flush()
        start, end = self.db.query(
            func.min(ProjectTask.start_date), func.max(ProjectTask.end_date)
        ).filter(ProjectTask.project_id == project.id).one()
        if start and end:
            project.start_date = start
            project.end_date = end

    def add_task(self, project_id: int, data: ProjectTaskAdd) -> ProjectTask:
        """
        Agrega una tarea existente (task_id) o crea una nueva (create_task).
        El rango del proyecto se amplía para cubrir las fechas de la tarea.
        """
        def operation():
            project = self.get_project(project_id)
            if data.create_task:
                inline = data.create_task
                task = Task(
                    title=inline.title, description=inline.description, priority=inline.priority.value,
                    area=inline.area, subarea=inline.subarea, status=TaskStatus.PENDING.value,
                    start_date=data.start_date, end_date=data.end_date, due_date=data.end_date,
                    user_id=self.user_id
                )
                self.db.add(task)
                self.db.flush()
                NotificationService(self.db).notify_new_task(task, self.user_id)
            else:
                task = self.db.get(Task, data.task_id)
                if not task:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail="Tarea no encontrada"
                    )
                exists = self.db.query(ProjectTask.id).filter(
                    ProjectTask.project_id == project.id, ProjectTask.task_id == task.id
                ).first()
                if exists:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail="La tarea ya forma parte del proyecto"
                    )

            link = ProjectTask(
                project_id=project.id, task_id=task.id, start_date=data.start_date, end_date=data.end_date,
                display_order=data.display_order, added_by=self.user_id
            )
            self.db.add(link)
            if project.start_date is None or data.start_date < project.start_date:
                project.start_date = data.start_date
            if project.end_date is None or data.end_date > project.end_date:
                project.end_date = data.end_date
            self.db.flush()
            return link.id

        link_id = self._run("agregar la tarea al proyecto", operation)
        return self.db.get(ProjectTask, link_id)

    def update_task(self, project_id: int, task_id: int, data: ProjectTaskUpdate) -> ProjectTask:
        """Fechas y orden del vínculo; el estado y las fechas se reflejan en la tarea."""
        def operation():
            project = self.get_project(project_id)
            link = self._link(project.id, task_id)
            changes = data.model_dump(exclude_unset=True)

            start_date = changes.get("start_date") or link.start_date
            end_date = changes.get("end_date") or link.end_date
            validate_date_range(start_date, end_date)
            dates_changed = start_date != link.start_date or end_date != link.end_date

            link.start_date = start_date
            link.end_date = end_date
            if changes.get("display_order") is not None:
                link.display_order = changes["display_order"]
            if changes.get("status") is not None:
                old_status = link.task.status
                link.task.status = changes["status"].value
                NotificationService(self.db).notify_status_change(
                    link.task, old_status, link.task.status, self.user_id
                )
            if dates_changed:
                link.task.start_date = start_date
                link.task.end_date = end_date
                link.task.due_date = end_date
                self._recalculate_range(project)
            return link.id

        link_id = self._run("actualizar la tarea del proyecto", operation)
        self.db.expire_all()
        return self.db.get(ProjectTask, link_id)

    def remove_task(self, project_id: int, task_id: int) -> Dict[str, str]:
        """Quita el vínculo; la tarea sigue existiendo en el tablero."""
        def operation():
            project = self.get_project(project_id)
            self.db.delete(self._link(project.id, task_id))

        self._run("quitar la tarea del proyecto", operation)
        return {"message": "Tarea quitada del proyecto"}
