from typing import Iterable, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_admin, get_current_user, get_registered_intern
from app.database.deps import get_db
from app.models.assignment import Assignment
from app.models.task import Task
from app.models.user import User
from app.schemas.assignment import (
    AdminStatsOut,
    AssignmentOut,
    InternProgressOut,
    ReconcileOut,
    ReconcileRequest,
    ReviewCreate,
    SubmissionCreate,
    SubmissionOut,
)
from app.services import progress, review
from app.services.reconciler import reconcile_assignments

router = APIRouter(prefix="/assignments", tags=["Assignments"])


def build_assignment_out(assignment: Assignment, task: Optional[Task]) -> AssignmentOut:
    return AssignmentOut(
        id=assignment.id,
        intern_id=assignment.intern_id,
        task_id=assignment.task_id,
        task_title=task.title if task else "",
        task_description=task.description if task else "",
        task_order=task.task_order if task else 0,
        status=assignment.status,
        submission_content=assignment.submission_content,
        admin_remarks=assignment.admin_remarks,
        submitted_at=assignment.submitted_at,
        reviewed_at=assignment.reviewed_at,
        reviewed_by=assignment.reviewed_by,
        version=assignment.version,
    )


def build_assignment_list(db: Session, assignments: Iterable[Assignment]) -> list[AssignmentOut]:
    rows = list(assignments)
    task_ids = {row.task_id for row in rows}
    tasks = {}
    if task_ids:
        tasks = {task.id: task for task in db.query(Task).filter(Task.id.in_(task_ids)).all()}
    return [build_assignment_out(row, tasks.get(row.task_id)) for row in rows]


def load_assignment_out(db: Session, assignment: Assignment) -> AssignmentOut:
    task = db.query(Task).filter(Task.id == assignment.task_id).first()
    return build_assignment_out(assignment, task)


@router.get("/stats", response_model=AdminStatsOut)
def read_admin_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return AdminStatsOut(**progress.admin_stats(db))


@router.get("/submissions", response_model=list[SubmissionOut])
def list_submissions(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    result = []
    for assignment, task, intern in review.list_submissions(db, status_filter):
        base = build_assignment_out(assignment, task)
        result.append(
            SubmissionOut(
                **base.model_dump(),
                intern_name=intern.full_name,
                intern_email=intern.email,
            )
        )
    return result


@router.get("/me", response_model=list[AssignmentOut])
def list_my_assignments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_registered_intern),
):
    return build_assignment_list(db, review.list_assignments_for_intern(db, current_user.id))


@router.get("/me/progress", response_model=InternProgressOut)
def read_my_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_registered_intern),
):
    return InternProgressOut(**progress.intern_progress(db, current_user.id))


@router.get("/interns/{intern_id}", response_model=list[AssignmentOut])
def list_intern_assignments(
    intern_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return build_assignment_list(db, review.list_assignments_for_intern(db, intern_id))


@router.put("/interns/{intern_id}", response_model=ReconcileOut)
def update_intern_assignments(
    intern_id: str,
    payload: ReconcileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    result = reconcile_assignments(db, current_user, intern_id, payload.task_ids)
    return ReconcileOut(
        added=result.added,
        removed=result.removed,
        assignments=build_assignment_list(db, result.assignments),
    )


@router.post("/{assignment_id}/submit", response_model=AssignmentOut)
def submit_assignment(
    assignment_id: str,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = review.submit_assignment(
        db,
        current_user,
        assignment_id,
        payload.content,
        expected_version=payload.version,
    )
    return load_assignment_out(db, assignment)


@router.post("/{assignment_id}/review", response_model=AssignmentOut)
def review_assignment(
    assignment_id: str,
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    assignment = review.review_assignment(
        db,
        current_user,
        assignment_id,
        payload.decision,
        remarks=payload.remarks,
        expected_version=payload.version,
    )
    return load_assignment_out(db, assignment)
