import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFound, ValidationError
from app.core.permissions import ensure_admin
from app.models.assignment import Assignment
from app.models.task import Task
from app.services.assignment_store import AssignmentStore

logger = logging.getLogger("uvicorn.error")


def list_tasks(db: Session) -> list[tuple[Task, int]]:
    assigned_counts = (
        db.query(Assignment.task_id, func.count(Assignment.id).label("assigned_count"))
        .group_by(Assignment.task_id)
        .subquery()
    )
    rows = (
        db.query(Task, func.coalesce(assigned_counts.c.assigned_count, 0))
        .outerjoin(assigned_counts, assigned_counts.c.task_id == Task.id)
        .order_by(Task.task_order.asc(), Task.id.asc())
        .all()
    )
    return [(task, int(count or 0)) for task, count in rows]


def get_task(db: Session, task_id: str) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Tarefa não encontrada")
    return task


def get_task_by_order(db: Session, task_order: int) -> Optional[Task]:
    return db.query(Task).filter(Task.task_order == task_order).first()


def count_assigned(db: Session, task_id: str) -> int:
    return db.query(func.count(Assignment.id)).filter(Assignment.task_id == task_id).scalar() or 0


def next_task_order(db: Session) -> int:
    current_max = db.query(func.max(Task.task_order)).scalar()
    return int(current_max or 0) + 1


def create_task(
    db: Session,
    actor,
    *,
    title: str,
    description: str,
    task_order: Optional[int] = None,
) -> Task:
    ensure_admin(actor)
    clean_title = str(title or "").strip()
    clean_description = str(description or "").strip()
    if not clean_title or not clean_description:
        raise ValidationError("Título e descrição são obrigatórios.")

    if task_order is None:
        task_order = next_task_order(db)
    elif task_order < 1:
        raise ValidationError("A ordem da tarefa deve ser maior que zero.")
    elif get_task_by_order(db, task_order):
        raise ConflictError(f"Já existe uma tarefa na posição {task_order}.")

    task = Task(title=clean_title, description=clean_description, task_order=task_order)
    db.add(task)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Já existe uma tarefa na posição {task_order}.") from exc
    db.refresh(task)
    logger.info("Tarefa criada: %s (ordem %s)", task.id, task.task_order)
    return task


def delete_task(db: Session, actor, task_id: str) -> int:
    """Exclui a tarefa e todas as atribuições que a referenciam."""
    ensure_admin(actor)
    task = get_task(db, task_id)
    try:
        removed = AssignmentStore(db).delete_by_task(task.id)
        db.delete(task)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Tarefa %s excluída (%s atribuições removidas)", task_id, removed)
    return removed
