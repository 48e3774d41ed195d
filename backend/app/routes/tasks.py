from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_admin, get_current_user
from app.database.deps import get_db
from app.models.task import Task
from app.models.user import User
from app.schemas.task import TaskCreate, TaskOut
from app.services import catalog

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"]
)

def build_task_out(task: Task, assigned_count: int = 0):
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description or "",
        task_order=task.task_order,
        assigned_count=assigned_count,
        created_at=task.created_at
    )

@router.get("/", response_model=list[TaskOut])
def read_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [build_task_out(task, count) for task, count in catalog.list_tasks(db)]

@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    db_task = catalog.create_task(
        db,
        current_user,
        title=task.title,
        description=task.description,
        task_order=task.task_order
    )
    return build_task_out(db_task)

@router.get("/{task_id}", response_model=TaskOut)
def read_task(
    task_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = catalog.get_task(db, task_id)
    return build_task_out(db_task, catalog.count_assigned(db, task_id))

@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    removed = catalog.delete_task(db, current_user, task_id)
    return {"detail": "Tarefa excluída", "removed_assignments": removed}
