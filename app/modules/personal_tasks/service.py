import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, case, or_
from sqlalchemy.orm import Session

from app.modules.personal_tasks.models import PersonalTask
from app.modules.personal_tasks.schemas import PersonalTaskCreate, PersonalTaskUpdate
from app.modules.tasks.models import TaskStatus, TaskPriority
from app.modules.tasks.service import validate_date_range

logger = logging.getLogger(__name__)


class PersonalTaskService:
    """Todas las consultas se limitan a las tareas del usuario dado."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return self.db.query(PersonalTask).filter(PersonalTask.user_id == self.user_id)

    def get_tasks(
        self,
        status_filter: Optional[str] = None,
        priority: Optional[str] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[PersonalTask]:
        query = self._query()
        if status_filter:
            query = query.filter(PersonalTask.status == status_filter)
        if priority:
            query = query.filter(PersonalTask.priority == priority)
        if area:
            query = query.filter(PersonalTask.area == area)
        if subarea:
            query = query.filter(PersonalTask.subarea == subarea)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(PersonalTask.title.ilike(term), PersonalTask.description.ilike(term)))
        return query.order_by(PersonalTask.created_at.desc(), PersonalTask.id.desc()).all()

    def get_task(self, task_id: int) -> PersonalTask:
        task = self._query().filter(PersonalTask.id == task_id).first()
        if not task:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tarea personal no encontrada"
            )
        return task

    def get_stats(self) -> Dict[str, int]:
        def count_when(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = self._query().with_entities(
            func.count(PersonalTask.id).label("total"),
            count_when(PersonalTask.status == TaskStatus.PENDING.value).label("pending"),
            count_when(PersonalTask.status == TaskStatus.IN_PROGRESS.value).label("in_progress"),
            count_when(PersonalTask.status == TaskStatus.COMPLETED.value).label("completed"),
            count_when(PersonalTask.priority == TaskPriority.HIGH.value).label("high_priority"),
            count_when(
                (PersonalTask.due_date < date.today()) & (PersonalTask.status != TaskStatus.COMPLETED.value)
            ).label("overdue")
        ).one()
        return {key: int(getattr(row, key) or 0) for key in
                ("total", "pending", "in_progress", "completed", "high_priority", "overdue")}

    def create_task(self, task_data: PersonalTaskCreate) -> PersonalTask:
        data = task_data.model_dump()
        data["status"] = task_data.status.value
        data["priority"] = task_data.priority.value
        task = PersonalTask(**data, user_id=self.user_id)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def update_task(self, task_id: int, task_update: PersonalTaskUpdate) -> PersonalTask:
        task = self.get_task(task_id)
        data = task_update.model_dump(exclude_unset=True)
        if not data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No hay campos para actualizar"
            )
        for field in ("title", "area", "subarea"):
            if field in data:
                value = (data[field] or "").strip()
                if not value:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede estar vacío"
                    )
                data[field] = value
        for field in ("status", "priority"):
            if field in data:
                if data[field] is None:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El campo {field} no puede ser nulo"
                    )
                data[field] = data[field].value
        validate_date_range(data.get("start_date", task.start_date), data.get("end_date", task.end_date))

        for field, value in data.items():
            setattr(task, field, value)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int) -> Dict[str, str]:
        task = self.get_task(task_id)
        self.db.delete(task)
        self.db.commit()
        return {"message": "Tarea personal eliminada exitosamente"}
