from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.modules.notifications.models import NotificationType


class NotificationCreate(BaseModel):
    user_id: int
    task_id: Optional[int] = None
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)


class NotificationOut(BaseModel):
    id: int
    user_id: int
    task_id: Optional[int] = None
    type: str
    title: str
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    task_title: Optional[str] = None
    task_status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    count: int


class MarkAllReadResult(BaseModel):
    message: str
    count: int
