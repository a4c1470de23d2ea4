from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime

from app.common.validators import clean_optional_str
from app.modules.projects.models import ProjectStatus, ProjectVisibility
from app.modules.tasks.models import TaskStatus, TaskPriority
from app.modules.tasks.schemas import check_date_range


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    area: str = Field(..., min_length=1, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    status: ProjectStatus = ProjectStatus.PLANNING
    visibility: ProjectVisibility = ProjectVisibility.SHARED
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('name', 'area')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('description', 'subarea')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @model_validator(mode='after')
    def check_dates(self):
        check_date_range(self.start_date, self.end_date)
        return self


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    status: Optional[ProjectStatus] = None
    visibility: Optional[ProjectVisibility] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class InlineTask(BaseModel):
    """Tarea nueva creada al momento de agregarla al proyecto."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    area: str = Field(..., min_length=1, max_length=100)
    subarea: str = Field(..., min_length=1, max_length=100)

    @field_validator('title', 'area', 'subarea')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v


class ProjectTaskAdd(BaseModel):
    task_id: Optional[int] = None
    create_task: Optional[InlineTask] = None
    start_date: date
    end_date: date
    display_order: int = 0

    @model_validator(mode='after')
    def check_source(self):
        if (self.task_id is None) == (self.create_task is None):
            raise ValueError('Indique task_id o create_task, pero no ambos')
        check_date_range(self.start_date, self.end_date)
        return self


class ProjectTaskUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[TaskStatus] = None
    display_order: Optional[int] = None


class ProjectTaskOut(BaseModel):
    id: int
    project_id: int
    task_id: int
    start_date: date
    end_date: date
    display_order: int
    title: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    username: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    status: str
    visibility: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    user_id: int
    username: Optional[str] = None
    task_count: int = 0
    completed_task_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectDetailOut(ProjectOut):
    tasks: List[ProjectTaskOut] = []
