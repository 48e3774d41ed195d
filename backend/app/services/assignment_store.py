"""Persistência das atribuições (estagiário, tarefa).

Toda escrita de status é um ``UPDATE`` condicional único sobre ``status`` e
``version``; nenhuma trava é mantida entre leituras e escritas. O commit fica
a cargo da operação que usa o store, para que cada chamada seja atômica.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFound
from app.models.assignment import Assignment
from app.models.task import Task
from app.services.status_machine import TaskStatus

UPDATABLE_FIELDS = {
    "status",
    "submission_content",
    "admin_remarks",
    "submitted_at",
    "reviewed_at",
    "reviewed_by",
}


def _status_values(statuses: Iterable[object]) -> list[str]:
    return [getattr(item, "value", item) for item in statuses]


class AssignmentStore:
    def __init__(self, db: Session):
        self.db = db

    def list_by_intern(self, intern_id: str) -> list[Assignment]:
        return (
            self.db.query(Assignment)
            .join(Task, Task.id == Assignment.task_id)
            .filter(Assignment.intern_id == intern_id)
            .order_by(Task.task_order.asc(), Task.id.asc())
            .all()
        )

    def get(self, assignment_id: str) -> Assignment:
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if not assignment:
            raise NotFound("Atribuição não encontrada")
        return assignment

    def get_by_intern_and_task(self, intern_id: str, task_id: str) -> Optional[Assignment]:
        return (
            self.db.query(Assignment)
            .filter(Assignment.intern_id == intern_id, Assignment.task_id == task_id)
            .first()
        )

    def create(self, record: dict[str, Any]) -> Assignment:
        return self.create_many([record])[0]

    def create_many(self, records: list[dict[str, Any]]) -> list[Assignment]:
        """Insere todas as atribuições ou nenhuma."""
        if not records:
            return []
        created = [
            Assignment(
                intern_id=record["intern_id"],
                task_id=record["task_id"],
                status=getattr(record.get("status"), "value", record.get("status")) or TaskStatus.LOCKED.value,
                version=1,
            )
            for record in records
        ]
        try:
            with self.db.begin_nested():
                self.db.add_all(created)
        except IntegrityError as exc:
            raise ConflictError("Tarefa já atribuída a este estagiário") from exc
        return created

    def update(
        self,
        assignment_id: str,
        patch: dict[str, Any],
        *,
        expected_status: Optional[Iterable[object]] = None,
        expected_version: Optional[int] = None,
    ) -> Assignment:
        """Aplica ``patch`` somente se a linha ainda estiver no estado esperado."""
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Campos não atualizáveis: {sorted(unknown)}")

        values = {getattr(Assignment, key): getattr(value, "value", value) for key, value in patch.items()}
        values[Assignment.version] = Assignment.version + 1

        query = self.db.query(Assignment).filter(Assignment.id == assignment_id)
        if expected_status is not None:
            query = query.filter(Assignment.status.in_(_status_values(expected_status)))
        if expected_version is not None:
            query = query.filter(Assignment.version == expected_version)

        updated = query.update(values, synchronize_session=False)
        if updated == 0:
            exists = self.db.query(Assignment.id).filter(Assignment.id == assignment_id).first()
            if not exists:
                raise NotFound("Atribuição não encontrada")
            raise ConflictError("A atribuição foi alterada por outra operação. Recarregue e tente novamente.")

        assignment = self.get(assignment_id)
        self.db.refresh(assignment)
        return assignment

    def delete_many(self, intern_id: str, task_ids: Iterable[str]) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        return (
            self.db.query(Assignment)
            .filter(Assignment.intern_id == intern_id, Assignment.task_id.in_(ids))
            .delete(synchronize_session=False)
        )

    def delete_by_task(self, task_id: str) -> int:
        return (
            self.db.query(Assignment)
            .filter(Assignment.task_id == task_id)
            .delete(synchronize_session=False)
        )

    def count_by_status(self, intern_id: Optional[str] = None) -> dict[str, int]:
        query = self.db.query(Assignment.status, func.count(Assignment.id))
        if intern_id is not None:
            query = query.filter(Assignment.intern_id == intern_id)
        rows = query.group_by(Assignment.status).all()
        counts = {item.value: 0 for item in TaskStatus}
        for status_value, total in rows:
            counts[str(status_value)] = int(total or 0)
        return counts
