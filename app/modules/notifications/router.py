from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.notifications.service import NotificationService
from app.modules.notifications.schemas import NotificationCreate, NotificationOut, UnreadCount, MarkAllReadResult

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[NotificationOut])
def get_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return NotificationService(db).get_notifications(current_user.id, unread_only, limit)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    return NotificationService(db).get_unread_count(current_user.id)


@router.patch("/mark-all-read", response_model=MarkAllReadResult)
def mark_all_as_read(db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    return NotificationService(db).mark_all_as_read(current_user.id)


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_as_read(notification_id: int, db: Session = Depends(get_db),
                 current_user: User = Depends(AuthDependencies.get_current_user)):
    return NotificationService(db).mark_as_read(notification_id, current_user.id)


@router.delete("/{notification_id}")
def delete_notification(notification_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return NotificationService(db).delete_notification(notification_id, current_user.id)


@router.post("/", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
def create_notification(data: NotificationCreate, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    """Crear notificación para cualquier usuario (uso interno de otros servicios)."""
    return NotificationService(db).create_notification(data)
