"""Entrega de tarefas pelo estagiário e revisão pelo administrador.

A aprovação de uma tarefa na posição ``N`` libera a tarefa ``N + 1`` do
mesmo estagiário, se ela estiver atribuída e ainda ``locked``. Aprovação e
liberação são gravadas na mesma transação.

Se o estagiário já tiver outra tarefa ``in_progress`` (atribuição fora de
ordem), a liberação é ignorada. A tarefa ``N + 1`` continua ``locked`` e não
é liberada por aprovações posteriores, que só olham a própria sucessora; cabe
ao administrador reatribuí-la.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ValidationError
from app.core.permissions import ensure_admin, ensure_assignment_owner
from app.models.assignment import Assignment
from app.models.task import Task
from app.models.user import User
from app.services.assignment_store import AssignmentStore
from app.services.catalog import get_task, get_task_by_order
from app.services.reconciler import get_intern
from app.services.status_machine import (
    REVIEWED_STATUSES,
    SUBMISSION_STATUSES,
    AssignmentEvent,
    TaskStatus,
    allowed_sources,
    next_status,
    parse_status,
    review_event,
    should_activate,
    validate_submission,
)

logger = logging.getLogger("uvicorn.error")

SUBMISSION_FILTERS = {
    "pending": {TaskStatus.SUBMITTED},
    "reviewed": set(REVIEWED_STATUSES),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_version(assignment: Assignment, expected_version: Optional[int]) -> None:
    if expected_version is not None and assignment.version != expected_version:
        raise ConflictError("A atribuição foi alterada por outra operação. Recarregue e tente novamente.")


def submit_assignment(
    db: Session,
    actor,
    assignment_id: str,
    content: Optional[str],
    expected_version: Optional[int] = None,
) -> Assignment:
    store = AssignmentStore(db)
    try:
        assignment = store.get(assignment_id)
        ensure_assignment_owner(actor, assignment.intern_id)
        cleaned = validate_submission(content)
        _check_version(assignment, expected_version)
        target = next_status(assignment.status, AssignmentEvent.SUBMIT)
        updated = store.update(
            assignment.id,
            {
                "status": target,
                "submission_content": cleaned,
                "submitted_at": utcnow(),
            },
            expected_status=[assignment.status],
            expected_version=assignment.version,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Tarefa entregue: atribuição %s", assignment_id)
    return updated


def activate_next_task(db: Session, store: AssignmentStore, assignment: Assignment) -> Optional[Assignment]:
    """Libera a próxima tarefa do currículo, sem nunca regredir status."""
    task = get_task(db, assignment.task_id)
    next_task = get_task_by_order(db, task.task_order + 1)
    if not next_task:
        return None

    successor = store.get_by_intern_and_task(assignment.intern_id, next_task.id)
    if not successor or not should_activate(successor.status):
        return None

    # Atribuição manual fora de ordem pode já ter outra tarefa em andamento.
    active = [
        item
        for item in store.list_by_intern(assignment.intern_id)
        if item.status == TaskStatus.IN_PROGRESS.value and item.id != successor.id
    ]
    if active:
        logger.info(
            "Liberação da tarefa %s ignorada: estagiário %s já possui tarefa em andamento",
            next_task.id,
            assignment.intern_id,
        )
        return None

    target = next_status(successor.status, AssignmentEvent.ACTIVATE)
    return store.update(
        successor.id,
        {"status": target},
        expected_status=allowed_sources(AssignmentEvent.ACTIVATE),
        expected_version=successor.version,
    )


def review_assignment(
    db: Session,
    actor,
    assignment_id: str,
    decision: str,
    remarks: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Assignment:
    ensure_admin(actor)
    event = review_event(decision)
    store = AssignmentStore(db)
    try:
        assignment = store.get(assignment_id)
        _check_version(assignment, expected_version)
        if parse_status(assignment.status) in REVIEWED_STATUSES:
            raise ConflictError("Esta entrega já foi revisada por outro administrador.")
        target = next_status(assignment.status, event)
        clean_remarks = str(remarks or "").strip() or None
        updated = store.update(
            assignment.id,
            {
                "status": target,
                "admin_remarks": clean_remarks,
                "reviewed_at": utcnow(),
                "reviewed_by": str(actor.id),
            },
            expected_status=allowed_sources(event),
            expected_version=assignment.version,
        )
        activated = None
        if target == TaskStatus.APPROVED:
            activated = activate_next_task(db, store, updated)
        db.commit()
    except ConflictError:
        db.rollback()
        logger.warning("Conflito ao revisar a atribuição %s", assignment_id)
        raise
    except Exception:
        db.rollback()
        raise

    logger.info("Atribuição %s revisada: %s", assignment_id, target.value)
    if activated is not None:
        logger.info("Tarefa liberada: atribuição %s", activated.id)
    return updated


def list_assignments_for_intern(db: Session, intern_id: str) -> list[Assignment]:
    get_intern(db, intern_id)
    return AssignmentStore(db).list_by_intern(intern_id)


def list_submissions(db: Session, status_filter: Optional[str] = None) -> list[tuple[Assignment, Task, User]]:
    statuses = set(SUBMISSION_STATUSES)
    if status_filter:
        key = status_filter.strip().lower()
        if key in SUBMISSION_FILTERS:
            statuses = SUBMISSION_FILTERS[key]
        else:
            status = parse_status(key)
            if status not in SUBMISSION_STATUSES:
                raise ValidationError(f"Filtro de status inválido: {status_filter}")
            statuses = {status}

    return (
        db.query(Assignment, Task, User)
        .join(Task, Task.id == Assignment.task_id)
        .join(User, User.id == Assignment.intern_id)
        .filter(Assignment.status.in_([item.value for item in statuses]))
        .order_by(Assignment.submitted_at.desc(), Assignment.id.asc())
        .all()
    )
