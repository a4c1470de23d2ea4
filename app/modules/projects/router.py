from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.projects.models import ProjectStatus, ProjectVisibility
from app.modules.projects.service import ProjectService
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectOut, ProjectDetailOut,
    ProjectTaskAdd, ProjectTaskUpdate, ProjectTaskOut
)

router = APIRouter(prefix="/projects", tags=["Projects"])


# ===== PROYECTOS =====

@router.get("/", response_model=List[ProjectOut])
def get_projects(
    area: Optional[str] = Query(None),
    subarea: Optional[str] = Query(None),
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    visibility: Optional[ProjectVisibility] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Proyectos compartidos y los privados del usuario, con conteo de tareas."""
    return ProjectService(db, current_user.id).get_projects(
        area, subarea,
        status_filter.value if status_filter else None,
        visibility.value if visibility else None
    )


@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(project_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).get_project(project_id)


@router.post("/", response_model=ProjectDetailOut, status_code=status.HTTP_201_CREATED)
def create_project(project_data: ProjectCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).create_project(project_data)


@router.put("/{project_id}", response_model=ProjectDetailOut)
def update_project(project_id: int, project_update: ProjectUpdate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).update_project(project_id, project_update)


@router.delete("/{project_id}")
def delete_project(project_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).delete_project(project_id)


# ===== TAREAS DEL PROYECTO =====

@router.get("/{project_id}/tasks", response_model=List[ProjectTaskOut])
def get_project_tasks(project_id: int, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).get_project_tasks(project_id)


@router.post("/{project_id}/tasks", response_model=ProjectTaskOut, status_code=status.HTTP_201_CREATED)
def add_task_to_project(project_id: int, data: ProjectTaskAdd, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Agregar tarea al proyecto

    - **task_id**: tarea existente, o **create_task** para crearla al vuelo
    - **start_date** y **end_date** son requeridas; el proyecto amplía su rango
    """
    return ProjectService(db, current_user.id).add_task(project_id, data)


@router.put("/{project_id}/tasks/{task_id}", response_model=ProjectTaskOut)
def update_project_task(project_id: int, task_id: int, data: ProjectTaskUpdate, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).update_task(project_id, task_id, data)


@router.delete("/{project_id}/tasks/{task_id}")
def remove_task_from_project(project_id: int, task_id: int, db: Session = Depends(get_db),
                             current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProjectService(db, current_user.id).remove_task(project_id, task_id)
