import enum

from sqlalchemy import Column, String, Integer, Text, Date, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.common.mixins import BaseMixin, AreaMixin


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class ProjectVisibility(str, enum.Enum):
    PRIVATE = "private"
    SHARED = "shared"


class Project(Base, BaseMixin, AreaMixin):
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("status IN ('planning', 'active', 'completed', 'on_hold')", name="ck_projects_status"),
        CheckConstraint("visibility IN ('private', 'shared')", name="ck_projects_visibility"),
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.PLANNING.value, index=True)
    visibility = Column(String(20), nullable=False, default=ProjectVisibility.SHARED.value, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    user = relationship("User")
    tasks = relationship(
        "ProjectTask", back_populates="project", cascade="all, delete-orphan",
        order_by=lambda: [ProjectTask.display_order, ProjectTask.start_date, ProjectTask.id]
    )

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def task_count(self) -> int:
        return len(self.tasks)

    @property
    def completed_task_count(self) -> int:
        return sum(1 for link in self.tasks if link.task and link.task.status == "completed")


class ProjectTask(Base, BaseMixin):
    __tablename__ = "project_tasks"
    __table_args__ = (
        UniqueConstraint("project_id", "task_id", name="uq_project_tasks_project_task"),
        CheckConstraint("start_date <= end_date", name="ck_project_tasks_dates"),
    )

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    added_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    project = relationship("Project", back_populates="tasks")
    task = relationship("Task", back_populates="project_links")

    # Datos de la tarea para la vista de Gantt
    @property
    def title(self):
        return self.task.title if self.task else None

    @property
    def status(self):
        return self.task.status if self.task else None

    @property
    def priority(self):
        return self.task.priority if self.task else None

    @property
    def area(self):
        return self.task.area if self.task else None

    @property
    def subarea(self):
        return self.task.subarea if self.task else None

    @property
    def username(self):
        return self.task.username if self.task else None
