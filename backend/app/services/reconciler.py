"""Sincroniza o conjunto de tarefas de um estagiário com o conjunto desejado.

Apenas as atribuições novas recebem status; as existentes nunca são
recalculadas. Se já houver uma tarefa ``in_progress`` entre as que continuam
selecionadas, todas as novas entram ``locked``; senão, a primeira nova (por
ordem) entra ``in_progress``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.core.permissions import ensure_admin, is_intern
from app.models.assignment import Assignment
from app.models.task import Task
from app.models.user import User
from app.services.assignment_store import AssignmentStore
from app.services.status_machine import TaskStatus, initial_statuses

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class AssignmentDiff:
    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass
class ReconcileResult:
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)


def diff_task_sets(current: Iterable[str], desired: Iterable[str]) -> AssignmentDiff:
    current_ids = set(current)
    desired_ids = set(desired)
    return AssignmentDiff(
        to_add=sorted(desired_ids - current_ids),
        to_remove=sorted(current_ids - desired_ids),
    )


def sort_by_curriculum(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda task: (task.task_order, str(task.id)))


def plan_new_assignments(intern_id: str, tasks_to_add: Iterable[Task], has_active: bool) -> list[dict]:
    ordered_ids = [task.id for task in sort_by_curriculum(tasks_to_add)]
    return [
        {"intern_id": intern_id, "task_id": task_id, "status": status}
        for task_id, status in initial_statuses(ordered_ids, has_active)
    ]


def normalize_task_ids(task_ids: object) -> set[str]:
    # Somente uma coleção vazia explícita remove todas as atribuições.
    if task_ids is None or isinstance(task_ids, (str, bytes)) or not isinstance(task_ids, Iterable):
        raise ValidationError("O conjunto de tarefas deve ser uma lista de identificadores.")
    result: set[str] = set()
    for item in task_ids:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError("Identificador de tarefa inválido.")
        result.add(item.strip())
    return result


def get_intern(db: Session, intern_id: str) -> User:
    intern = db.query(User).filter(User.id == intern_id).first()
    if not intern or not is_intern(intern):
        raise NotFound("Estagiário não encontrado")
    return intern


def load_tasks(db: Session, task_ids: set[str]) -> dict[str, Task]:
    if not task_ids:
        return {}
    tasks = db.query(Task).filter(Task.id.in_(task_ids)).all()
    found = {task.id: task for task in tasks}
    missing = sorted(task_ids - set(found))
    if missing:
        raise NotFound(f"Tarefa não encontrada: {', '.join(missing)}")
    return found


def reconcile_assignments(db: Session, actor, intern_id: str, desired_task_ids) -> ReconcileResult:
    ensure_admin(actor)
    desired = normalize_task_ids(desired_task_ids)
    store = AssignmentStore(db)

    try:
        get_intern(db, intern_id)
        tasks = load_tasks(db, desired)

        current = store.list_by_intern(intern_id)
        diff = diff_task_sets((item.task_id for item in current), desired)
        if diff.is_empty:
            return ReconcileResult(assignments=current)

        # list_by_intern já vem na ordem do currículo.
        to_remove = set(diff.to_remove)
        removed = [item.task_id for item in current if item.task_id in to_remove]
        store.delete_many(intern_id, diff.to_remove)

        # Somente as tarefas que continuam selecionadas contam.
        remaining = [item for item in current if item.task_id in desired]
        has_active = any(item.status == TaskStatus.IN_PROGRESS.value for item in remaining)

        records = plan_new_assignments(intern_id, (tasks[task_id] for task_id in diff.to_add), has_active)
        store.create_many(records)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Atribuições do estagiário %s sincronizadas: %s adicionadas, %s removidas",
        intern_id,
        len(records),
        len(removed),
    )
    return ReconcileResult(
        added=[record["task_id"] for record in records],
        removed=removed,
        assignments=store.list_by_intern(intern_id),
    )
