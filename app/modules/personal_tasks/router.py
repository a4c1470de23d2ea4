from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.personal_tasks.service import PersonalTaskService
from app.modules.personal_tasks.schemas import (
    PersonalTaskCreate, PersonalTaskUpdate, PersonalTaskOut, PersonalTaskStats
)
from app.modules.tasks.models import TaskStatus, TaskPriority

router = APIRouter(prefix="/personal-tasks", tags=["Personal Tasks"])


@router.get("/", response_model=List[PersonalTaskOut])
def get_personal_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return PersonalTaskService(db, current_user.id).get_tasks(
        status_filter.value if status_filter else None,
        priority.value if priority else None,
        area, subarea, search
    )


@router.get("/stats", response_model=PersonalTaskStats)
def get_personal_tasks_stats(db: Session = Depends(get_db),
                             current_user: User = Depends(AuthDependencies.get_current_user)):
    """Totales por estado, alta prioridad y vencidas (sin completar)."""
    return PersonalTaskService(db, current_user.id).get_stats()


@router.get("/{task_id}", response_model=PersonalTaskOut)
def get_personal_task(task_id: int, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return PersonalTaskService(db, current_user.id).get_task(task_id)


@router.post("/", response_model=PersonalTaskOut, status_code=status.HTTP_201_CREATED)
def create_personal_task(task_data: PersonalTaskCreate, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return PersonalTaskService(db, current_user.id).create_task(task_data)


@router.put("/{task_id}", response_model=PersonalTaskOut)
def update_personal_task(task_id: int, task_update: PersonalTaskUpdate, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return PersonalTaskService(db, current_user.id).update_task(task_id, task_update)


@router.delete("/{task_id}")
def delete_personal_task(task_id: int, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return PersonalTaskService(db, current_user.id).delete_task(task_id)
