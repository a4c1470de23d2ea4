"""
Servicio de notificaciones

Las notificaciones de tareas se agregan a la sesión del cambio que las
origina; se confirman junto con la tarea o se descartan con ella.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.modules.auth.models import User
from app.modules.notifications.models import Notification, NotificationType
from app.modules.notifications.schemas import NotificationCreate

logger = logging.getLogger(__name__)


STATUS_LABELS = {
    "pending": "Pendiente",
    "in_progress": "En progreso",
    "completed": "Completada",
}


class NotificationService:

    def __init__(self, db: Session):
        self.db = db

    # ===== CONSULTAS =====

    def get_notifications(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = self.db.query(Notification).options(selectinload(Notification.task)).filter(
            Notification.user_id == user_id
        )
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def get_unread_count(self, user_id: int) -> Dict[str, int]:
        count = self.db.query(Notification).filter(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        ).count()
        return {"count": count}

    def _owned(self, notification_id: int, user_id: int) -> Notification:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id, Notification.user_id == user_id
        ).first()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notificación no encontrada"
            )
        return notification

    # ===== MUTACIONES =====

    def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        notification = self._owned(notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, user_id: int) -> Dict:
        count = self.db.query(Notification).filter(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        ).update(
            {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
            synchronize_session=False
        )
        self.db.commit()
        return {"message": "Todas las notificaciones marcadas como leídas", "count": count}

    def delete_notification(self, notification_id: int, user_id: int) -> Dict[str, str]:
        notification = self._owned(notification_id, user_id)
        self.db.delete(notification)
        self.db.commit()
        return {"message": "Notificación eliminada exitosamente"}

    def create_notification(self, data: NotificationCreate) -> Notification:
        if not self.db.get(User, data.user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario destinatario no encontrado"
            )
        notification = Notification(
            user_id=data.user_id, task_id=data.task_id, type=data.type.value,
            title=data.title, message=data.message
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    # ===== EVENTOS DE TAREAS =====

    def notify_new_task(self, task, creator_id: int) -> int:
        """Avisa a todos los usuarios activos, excepto al creador, de una tarea nueva."""
        due_info = f" con vencimiento el {task.due_date:%d/%m/%Y}" if task.due_date else ""
        users = self.db.query(User.id).filter(User.id != creator_id, User.is_active.is_(True)).all()
        for (user_id,) in users:
            self.db.add(Notification(
                user_id=user_id, task_id=task.id, type=NotificationType.NEW_TASK.value,
                title="Nueva tarea",
                message=f'Se creó la tarea "{task.title}"{due_info}.'
            ))
        logger.info(f"Tarea {task.id}: {len(users)} usuario(s) notificados")
        return len(users)

    def notify_status_change(self, task, old_status: str, new_status: str, changed_by: int) -> bool:
        """Avisa al dueño cuando otro usuario cambia el estado de su tarea."""
        if task.user_id == changed_by or old_status == new_status:
            return False
        self.db.add(Notification(
            user_id=task.user_id, task_id=task.id, type=NotificationType.STATUS_CHANGE.value,
            title="Cambio de estado",
            message=(
                f'El estado de la tarea "{task.title}" cambió de '
                f'"{STATUS_LABELS.get(old_status, old_status)}" a "{STATUS_LABELS.get(new_status, new_status)}".'
            )
        ))
        return True
