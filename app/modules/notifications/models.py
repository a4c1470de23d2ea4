import enum

from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin


class NotificationType(str, enum.Enum):
    NEW_TASK = "new_task"
    STATUS_CHANGE = "status_change"
    DEADLINE_APPROACHING = "deadline_approaching"
    DEADLINE_TODAY = "deadline_today"
    OVERDUE = "overdue"


class Notification(Base, BaseMixin):
    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    task = relationship("Task", back_populates="notifications")

    @property
    def task_title(self):
        return self.task.title if self.task else None

    @property
    def task_status(self):
        return self.task.status if self.task else None
