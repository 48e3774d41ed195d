"""
Máquina de estados das atribuições de tarefa.

Fluxo linear por estagiário::

    locked -> in_progress -> submitted -> approved
                             submitted -> rejected -> submitted (reenvio)

``locked`` só sai desse estado pela ativação disparada na aprovação da
tarefa anterior. ``approved`` é final.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from app.core.errors import InvalidTransition, ValidationError


class TaskStatus(str, Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class AssignmentEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    ACTIVATE = "activate"


TRANSITIONS: dict[tuple[TaskStatus, AssignmentEvent], TaskStatus] = {
    (TaskStatus.IN_PROGRESS, AssignmentEvent.SUBMIT): TaskStatus.SUBMITTED,
    (TaskStatus.REJECTED, AssignmentEvent.SUBMIT): TaskStatus.SUBMITTED,
    (TaskStatus.SUBMITTED, AssignmentEvent.APPROVE): TaskStatus.APPROVED,
    (TaskStatus.SUBMITTED, AssignmentEvent.REJECT): TaskStatus.REJECTED,
    (TaskStatus.LOCKED, AssignmentEvent.ACTIVATE): TaskStatus.IN_PROGRESS,
}

REVIEWED_STATUSES = {TaskStatus.APPROVED, TaskStatus.REJECTED}
SUBMISSION_STATUSES = {TaskStatus.SUBMITTED} | REVIEWED_STATUSES


def parse_status(value: object) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(str(value or "").strip())
    except ValueError as exc:
        raise ValidationError(f"Status inválido: {value}") from exc


def next_status(current: object, event: AssignmentEvent) -> TaskStatus:
    current_status = parse_status(current)
    target = TRANSITIONS.get((current_status, event))
    if target is None:
        raise InvalidTransition(current_status.value, event.value)
    return target


def allowed_sources(event: AssignmentEvent) -> set[TaskStatus]:
    """Status a partir dos quais ``event`` é aceito."""
    return {source for source, accepted in TRANSITIONS if accepted == event}


def validate_submission(content: Optional[str]) -> str:
    cleaned = str(content or "").strip()
    if not cleaned:
        raise ValidationError("O conteúdo da entrega não pode ser vazio.")
    return cleaned


def review_event(decision: object) -> AssignmentEvent:
    normalized = str(decision or "").strip().lower()
    if normalized == "approve":
        return AssignmentEvent.APPROVE
    if normalized == "reject":
        return AssignmentEvent.REJECT
    raise ValidationError("Decisão inválida. Use 'approve' ou 'reject'.")


def should_activate(current: object) -> bool:
    # Ativação nunca regride estados mais avançados.
    return parse_status(current) == TaskStatus.LOCKED


def initial_statuses(task_ids: Iterable[str], has_active: bool) -> list[tuple[str, TaskStatus]]:
    """Status inicial de cada tarefa nova, já ordenada por ``task_order``."""
    result: list[tuple[str, TaskStatus]] = []
    for index, task_id in enumerate(task_ids):
        if index == 0 and not has_active:
            result.append((task_id, TaskStatus.IN_PROGRESS))
        else:
            result.append((task_id, TaskStatus.LOCKED))
    return result
