"""
Routers de tareas

- /tasks: tablero compartido, comentarios y adjuntos
- /subtasks: pasos de cada tarea
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.ledger.schemas import AttachmentCreate, AttachmentOut
from app.modules.tasks.models import TaskStatus, TaskPriority
from app.modules.tasks.service import TaskService, SubtaskService, CommentService, TaskAttachmentService
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskOut, TaskDetailOut,
    SubtaskCreate, SubtaskUpdate, SubtaskOut,
    CommentCreate, CommentUpdate, CommentOut
)

router = APIRouter(prefix="/tasks", tags=["Tasks"])
subtasks_router = APIRouter(prefix="/subtasks", tags=["Subtasks"])


# ===== TAREAS =====

@router.get("/", response_model=List[TaskOut])
def get_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    mine: bool = Query(False, description="Solo tareas del usuario actual"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return TaskService(db).get_tasks(
        status_filter.value if status_filter else None,
        priority.value if priority else None,
        area, subarea, search,
        current_user.id if mine else None
    )


@router.get("/{task_id}", response_model=TaskDetailOut)
def get_task(task_id: int, db: Session = Depends(get_db),
             current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskService(db).get_task(task_id)


@router.post("/", response_model=TaskDetailOut, status_code=status.HTTP_201_CREATED)
def create_task(task_data: TaskCreate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Crear tarea

    - **title**, **area** y **subarea** son requeridos
    - **priority**: low, medium (por defecto) o high
    - Se notifica a los demás usuarios
    """
    return TaskService(db).create_task(task_data, current_user.id)


@router.put("/{task_id}", response_model=TaskDetailOut)
def update_task(task_id: int, task_update: TaskUpdate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskService(db).update_task(task_id, task_update, current_user.id)


@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskService(db).delete_task(task_id, current_user.id)


# ===== COMENTARIOS =====

@router.get("/{task_id}/comments", response_model=List[CommentOut])
def get_task_comments(task_id: int, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return CommentService(db).get_comments(task_id)


@router.post("/{task_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def create_task_comment(task_id: int, comment_data: CommentCreate, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return CommentService(db).create_comment(task_id, comment_data, current_user.id)


@router.put("/{task_id}/comments/{comment_id}", response_model=CommentOut)
def update_task_comment(task_id: int, comment_id: int, comment_data: CommentUpdate, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return CommentService(db).update_comment(task_id, comment_id, comment_data, current_user.id)


@router.delete("/{task_id}/comments/{comment_id}")
def delete_task_comment(task_id: int, comment_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return CommentService(db).delete_comment(task_id, comment_id, current_user.id)


# ===== ADJUNTOS =====

@router.delete("/attachments/{attachment_id}")
def delete_task_attachment(attachment_id: int, db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskAttachmentService(db).delete_attachment(attachment_id, current_user.id)


@router.get("/{task_id}/attachments", response_model=List[AttachmentOut])
def get_task_attachments(task_id: int, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskAttachmentService(db).get_task_attachments(task_id)


@router.post("/{task_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
def add_task_attachment(task_id: int, data: AttachmentCreate, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskAttachmentService(db).add_attachment(task_id, data, current_user.id)


@router.get("/{task_id}/comments/{comment_id}/attachments", response_model=List[AttachmentOut])
def get_comment_attachments(task_id: int, comment_id: int, db: Session = Depends(get_db),
                            current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskAttachmentService(db).get_comment_attachments(task_id, comment_id)


@router.post("/{task_id}/comments/{comment_id}/attachments", response_model=AttachmentOut,
             status_code=status.HTTP_201_CREATED)
def add_comment_attachment(task_id: int, comment_id: int, data: AttachmentCreate, db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    return TaskAttachmentService(db).add_attachment(task_id, data, current_user.id, comment_id=comment_id)


# ===== SUBTAREAS =====

@subtasks_router.get("/task/{task_id}", response_model=List[SubtaskOut])
def get_subtasks(task_id: int, db: Session = Depends(get_db),
                 current_user: User = Depends(AuthDependencies.get_current_user)):
    return SubtaskService(db).get_subtasks(task_id)


@subtasks_router.post("/", response_model=SubtaskOut, status_code=status.HTTP_201_CREATED)
def create_subtask(subtask_data: SubtaskCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    """Las fechas deben caer dentro del rango de la tarea cuando ésta lo define."""
    return SubtaskService(db).create_subtask(subtask_data)


@subtasks_router.put("/{subtask_id}", response_model=SubtaskOut)
def update_subtask(subtask_id: int, subtask_update: SubtaskUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return SubtaskService(db).update_subtask(subtask_id, subtask_update)


@subtasks_router.delete("/{subtask_id}")
def delete_subtask(subtask_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return SubtaskService(db).delete_subtask(subtask_id)
