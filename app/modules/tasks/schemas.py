from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime

from app.common.validators import clean_optional_str
from app.modules.tasks.models import TaskStatus, TaskPriority, SubtaskStatus
from app.modules.ledger.schemas import AttachmentCreate, AttachmentOut


def check_date_range(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and start_date > end_date:
        raise ValueError('La fecha de inicio no puede ser posterior a la fecha de fin')


# ===== TAREAS =====

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    area: str = Field(..., min_length=1, max_length=100)
    subarea: str = Field(..., min_length=1, max_length=100)
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('title', 'area', 'subarea')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('description')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)

    @model_validator(mode='after')
    def check_dates(self):
        check_date_range(self.start_date, self.end_date)
        return self


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    area: Optional[str] = Field(None, max_length=100)
    subarea: Optional[str] = Field(None, max_length=100)
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('description')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)


class SubtaskOut(BaseModel):
    id: int
    task_id: int
    name: str
    description: Optional[str] = None
    status: str
    completed: bool
    assignee: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    area: Optional[str] = None
    subarea: Optional[str] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    user_id: int
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskDetailOut(TaskOut):
    subtasks: List[SubtaskOut] = []
    attachments: List[AttachmentOut] = []


# ===== SUBTAREAS =====

class SubtaskCreate(BaseModel):
    task_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: SubtaskStatus = SubtaskStatus.PENDING
    assignee: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre de la subtarea es requerido')
        return v

    @field_validator('description', 'assignee')
    @classmethod
    def strip_optional(cls, v):
        return clean_optional_str(v)


class SubtaskUpdate(BaseModel):
    """`completed` es un atajo para alternar entre pending y completed."""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[SubtaskStatus] = None
    completed: Optional[bool] = None
    assignee: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# ===== COMENTARIOS =====

class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)
    attachments: List[AttachmentCreate] = Field(default_factory=list)

    @field_validator('comment')
    @classmethod
    def strip_comment(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El comentario es requerido')
        return v


class CommentUpdate(BaseModel):
    comment: str = Field(..., min_length=1)

    @field_validator('comment')
    @classmethod
    def strip_comment(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El comentario es requerido')
        return v


class CommentOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    username: Optional[str] = None
    comment: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []

    class Config:
        from_attributes = True
