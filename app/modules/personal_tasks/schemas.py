from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime

from app.modules.tasks.schemas import TaskCreate, TaskUpdate


class PersonalTaskCreate(TaskCreate):
    pass


class PersonalTaskUpdate(TaskUpdate):
    pass


class PersonalTaskOut(BaseModel):
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
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PersonalTaskStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    high_priority: int
    overdue: int
