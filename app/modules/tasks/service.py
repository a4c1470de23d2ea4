"""
Servicios de tareas compartidas

- TaskService: CRUD del tablero, con notificaciones de alta y de cambio de estado
- SubtaskService: pasos de una tarea, dentro del rango de fechas del padre
- CommentService: comentarios; solo el autor los edita o elimina
- TaskAttachmentService: archivos de tareas y comentarios
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.modules.notifications.service import NotificationService
from app.modules.tasks.models import Task, Subtask, TaskComment, TaskAttachment, SubtaskStatus
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, SubtaskCreate, SubtaskUpdate, CommentCreate, CommentUpdate
)
from app.modules.ledger.schemas import AttachmentCreate

logger = logging.getLogger(__name__)


def validate_date_range(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La fecha de inicio no puede ser posterior a la fecha de fin"
        )


class BaseTaskService:

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, operation: str):
        try:
            self.db.commit()
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

    def get_task(self, task_id: int) -> Task:
        task = self.db.query(Task).options(
            selectinload(Task.subtasks), selectinload(Task.attachments), selectinload(Task.user)
        ).filter(Task.id == task_id).first()
        if not task:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tarea no encontrada"
            )
        return task


# ===== TAREAS =====

class TaskService(BaseTaskService):

    def get_tasks(
        self,
        status_filter: Optional[str] = None,
        priority: Optional[str] = None,
        area: Optional[str] = None,
        subarea: Optional[str] = None,
        search: Optional[str] = None,
        owner_id: Optional[int] = None
    ) -> List[Task]:
        query = self.db.query(Task).options(selectinload(Task.user))
        if status_filter:
            query = query.filter(Task.status == status_filter)
        if priority:
            query = query.filter(Task.priority == priority)
        if area:
            query = query.filter(Task.area == area)
        if subarea:
            query = query.filter(Task.subarea == subarea)
        if owner_id:
            query = query.filter(Task.user_id == owner_id)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Task.title.ilike(term), Task.description.ilike(term)))
        return query.order_by(Task.created_at.desc(), Task.id.desc()).all()

    def create_task(self, task_data: TaskCreate, user_id: int) -> Task:
        data = task_data.model_dump()
        data["status"] = task_data.status.value
        data["priority"] = task_data.priority.value

        task = Task(**data, user_id=user_id)
        self.db.add(task)
        self.db.flush()
        NotificationService(self.db).notify_new_task(task, user_id)
        self._commit("crear la tarea")
        logger.info(f"Tarea {task.id} creada por usuario {user_id}")
        return self.get_task(task.id)

    def update_task(self, task_id: int, task_update: TaskUpdate, user_id: int) -> Task:
        """
        El dueño puede cambiar cualquier campo; otros usuarios solo el estado.
        Un cambio de estado hecho por otro usuario notifica al dueño.
        """
        task = self.get_task(task_id)
        data = task_update.model_dump(exclude_unset=True)
        if not data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No hay campos para actualizar"
            )
        if task.user_id != user_id and set(data) - {"status"}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo el dueño de la tarea puede modificarla; otros usuarios solo cambian el estado"
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

        old_status = task.status
        for field, value in data.items():
            setattr(task, field, value)
        if "status" in data:
            NotificationService(self.db).notify_status_change(task, old_status, task.status, user_id)
        self._commit("actualizar la tarea")
        return self.get_task(task.id)

    def delete_task(self, task_id: int, user_id: int) -> Dict[str, str]:
        task = self.get_task(task_id)
        if task.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo el dueño de la tarea puede eliminarla"
            )
        self.db.delete(task)
        self._commit("eliminar la tarea")
        logger.info(f"Tarea {task_id} eliminada por usuario {user_id}")
        return {"message": "Tarea eliminada exitosamente"}


# ===== SUBTAREAS =====

class SubtaskService(BaseTaskService):

    def _check_parent_range(self, task: Task, start_date: Optional[date], end_date: Optional[date]):
        """Solo se valida contra el padre cuando éste tiene ambas fechas."""
        validate_date_range(start_date, end_date)
        if not (task.start_date and task.end_date):
            return
        for value in (start_date, end_date):
            if value and (value < task.start_date or value > task.end_date):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=(
                        f"Las fechas de la subtarea deben estar entre {task.start_date:%d/%m/%Y} "
                        f"y {task.end_date:%d/%m/%Y}"
                    )
                )

    def get_subtasks(self, task_id: int) -> List[Subtask]:
        self.get_task(task_id)
        return self.db.query(Subtask).filter(Subtask.task_id == task_id).order_by(Subtask.id).all()

    def get_subtask(self, subtask_id: int) -> Subtask:
        subtask = self.db.get(Subtask, subtask_id)
        if not subtask:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Subtarea no encontrada"
            )
        return subtask

    def create_subtask(self, subtask_data: SubtaskCreate) -> Subtask:
        task = self.get_task(subtask_data.task_id)
        self._check_parent_range(task, subtask_data.start_date, subtask_data.end_date)
        data = subtask_data.model_dump()
        data["status"] = subtask_data.status.value
        subtask = Subtask(**data)
        self.db.add(subtask)
        self._commit("crear la subtarea")
        self.db.refresh(subtask)
        return subtask

    def update_subtask(self, subtask_id: int, subtask_update: SubtaskUpdate) -> Subtask:
        subtask = self.get_subtask(subtask_id)
        data = subtask_update.model_dump(exclude_unset=True)

        completed = data.pop("completed", None)
        if completed is not None:
            data["status"] = SubtaskStatus.COMPLETED if completed else SubtaskStatus.PENDING
        if data.get("status") is not None:
            data["status"] = data["status"].value
        elif "status" in data:
            del data["status"]
        if "name" in data:
            name = (data["name"] or "").strip()
            if not name:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El nombre de la subtarea no puede estar vacío"
                )
            data["name"] = name

        self._check_parent_range(
            subtask.task, data.get("start_date", subtask.start_date), data.get("end_date", subtask.end_date)
        )
        for field, value in data.items():
            setattr(subtask, field, value)
        self._commit("actualizar la subtarea")
        self.db.refresh(subtask)
        return subtask

    def delete_subtask(self, subtask_id: int) -> Dict[str, str]:
        subtask = self.get_subtask(subtask_id)
        self.db.delete(subtask)
        self._commit("eliminar la subtarea")
        return {"message": "Subtarea eliminada exitosamente"}


# ===== COMENTARIOS =====

class CommentService(BaseTaskService):

    def get_comments(self, task_id: int) -> List[TaskComment]:
        self.get_task(task_id)
        return self.db.query(TaskComment).options(
            selectinload(TaskComment.user), selectinload(TaskComment.attachments)
        ).filter(TaskComment.task_id == task_id).order_by(TaskComment.created_at, TaskComment.id).all()

    def _authored(self, task_id: int, comment_id: int, user_id: int) -> TaskComment:
        comment = self.db.query(TaskComment).filter(
            TaskComment.id == comment_id, TaskComment.task_id == task_id
        ).first()
        if not comment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Comentario no encontrado"
            )
        if comment.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo el autor puede modificar el comentario"
            )
        return comment

    def create_comment(self, task_id: int, comment_data: CommentCreate, user_id: int) -> TaskComment:
        task = self.get_task(task_id)
        comment = TaskComment(task_id=task.id, user_id=user_id, comment=comment_data.comment)
        for attachment in comment_data.attachments:
            comment.attachments.append(TaskAttachment(task_id=task.id, user_id=user_id, **attachment.model_dump()))
        self.db.add(comment)
        self._commit("crear el comentario")
        self.db.refresh(comment)
        return comment

    def update_comment(self, task_id: int, comment_id: int, comment_data: CommentUpdate, user_id: int) -> TaskComment:
        comment = self._authored(task_id, comment_id, user_id)
        comment.comment = comment_data.comment
        self._commit("actualizar el comentario")
        self.db.refresh(comment)
        return comment

    def delete_comment(self, task_id: int, comment_id: int, user_id: int) -> Dict[str, str]:
        comment = self._authored(task_id, comment_id, user_id)
        self.db.delete(comment)
        self._commit("eliminar el comentario")
        return {"message": "Comentario eliminado exitosamente"}


# ===== ADJUNTOS =====

class TaskAttachmentService(BaseTaskService):

    def _comment(self, task_id: int, comment_id: int) -> TaskComment:
        comment = self.db.query(TaskComment).filter(
            TaskComment.id == comment_id, TaskComment.task_id == task_id
        ).first()
        if not comment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Comentario no encontrado"
            )
        return comment

    def get_task_attachments(self, task_id: int) -> List[TaskAttachment]:
        self.get_task(task_id)
        return self.db.query(TaskAttachment).filter(
            TaskAttachment.task_id == task_id, TaskAttachment.comment_id.is_(None)
        ).order_by(TaskAttachment.id).all()

    def get_comment_attachments(self, task_id: int, comment_id: int) -> List[TaskAttachment]:
        return list(self._comment(task_id, comment_id).attachments)

    def add_attachment(self, task_id: int, data: AttachmentCreate, user_id: int,
                       comment_id: Optional[int] = None) -> TaskAttachment:
        task = self.get_task(task_id)
        if comment_id is not None:
            self._comment(task_id, comment_id)
        attachment = TaskAttachment(task_id=task.id, comment_id=comment_id, user_id=user_id, **data.model_dump())
        self.db.add(attachment)
        self._commit("agregar el adjunto")
        self.db.refresh(attachment)
        return attachment

    def delete_attachment(self, attachment_id: int, user_id: int) -> Dict[str, str]:
        attachment = self.db.get(TaskAttachment, attachment_id)
        if not attachment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Adjunto no encontrado"
            )
        if user_id not in (attachment.user_id, attachment.task.user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo quien subió el archivo o el dueño de la tarea pueden eliminarlo"
            )
        self.db.delete(attachment)
        self._commit("eliminar el adjunto")
        return {"message": "Adjunto eliminado exitosamente"}
