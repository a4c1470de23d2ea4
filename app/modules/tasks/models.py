"""
Modelos de tareas compartidas

Task es la tarea del tablero común; Subtask la divide en pasos, TaskComment
guarda la conversación y TaskAttachment los archivos de la tarea o de un
comentario.
"""

import enum

from sqlalchemy import Column, String, Integer, Text, Date, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin, AreaMixin
from app.modules.ledger.models import AttachmentColumnsMixin


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SubtaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class TaskColumnsMixin(AreaMixin):
    """Columnas compartidas por tareas y tareas personales."""

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value, index=True)
    priority = Column(String(10), nullable=False, default=TaskPriority.MEDIUM.value, index=True)
    due_date = Column(Date, nullable=True, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)


class Task(Base, BaseMixin, TaskColumnsMixin):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'in_progress', 'completed')", name="ck_tasks_status"),
        CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_tasks_priority"),
    )

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    user = relationship("User")
    subtasks = relationship(
        "Subtask", back_populates="task", cascade="all, delete-orphan", order_by="Subtask.id"
    )
    comments = relationship(
        "TaskComment", back_populates="task", cascade="all, delete-orphan", order_by="TaskComment.id"
    )
    attachments = relationship(
        "TaskAttachment", back_populates="task", cascade="all, delete-orphan", order_by="TaskAttachment.id"
    )
    notifications = relationship("Notification", back_populates="task", cascade="all, delete-orphan")
    project_links = relationship("ProjectTask", back_populates="task", cascade="all, delete-orphan")

    @property
    def username(self):
        return self.user.username if self.user else None


class Subtask(Base, BaseMixin):
    __tablename__ = "subtasks"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'completed')", name="ck_subtasks_status"),
    )

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=SubtaskStatus.PENDING.value)
    assignee = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    task = relationship("Task", back_populates="subtasks")

    @property
    def completed(self) -> bool:
        return self.status == SubtaskStatus.COMPLETED.value


class TaskComment(Base, BaseMixin):
    __tablename__ = "task_comments"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    comment = Column(Text, nullable=False)

    task = relationship("Task", back_populates="comments")
    user = relationship("User")
    attachments = relationship(
        "TaskAttachment", back_populates="comment", cascade="all", order_by="TaskAttachment.id"
    )

    @property
    def username(self):
        return self.user.username if self.user else None


class TaskAttachment(Base, BaseMixin, AttachmentColumnsMixin):
    __tablename__ = "task_attachments"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_id = Column(Integer, ForeignKey("task_comments.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    task = relationship("Task", back_populates="attachments")
    comment = relationship("TaskComment", back_populates="attachments")
