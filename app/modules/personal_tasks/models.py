from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint

from app.database.database import Base
from app.common.mixins import BaseMixin
from app.modules.tasks.models import TaskColumnsMixin


class PersonalTask(Base, BaseMixin, TaskColumnsMixin):
    """Tarea privada; solo su dueño la ve."""
    __tablename__ = "personal_tasks"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'in_progress', 'completed')", name="ck_personal_tasks_status"),
        CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_personal_tasks_priority"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
