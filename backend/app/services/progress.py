from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import REGISTRATION_COMPLETE_STEP
from app.core.permissions import ROLE_INTERN
from app.models.user import User
from app.services.assignment_store import AssignmentStore
from app.services.status_machine import TaskStatus


def intern_progress(db: Session, intern_id: str) -> dict:
    counts = AssignmentStore(db).count_by_status(intern_id)
    total = sum(counts.values())
    approved = counts[TaskStatus.APPROVED.value]
    percent = round(approved / total * 100, 2) if total else 0.0
    return {"total": total, **counts, "progress_percent": percent}


def admin_stats(db: Session) -> dict:
    total_interns = db.query(func.count(User.id)).filter(User.role == ROLE_INTERN).scalar() or 0
    completed = (
        db.query(func.count(User.id))
        .filter(User.role == ROLE_INTERN, User.registration_step >= REGISTRATION_COMPLETE_STEP)
        .scalar()
        or 0
    )
    counts = AssignmentStore(db).count_by_status()
    return {
        "total_interns": int(total_interns),
        "completed_registrations": int(completed),
        "pending_approvals": counts[TaskStatus.SUBMITTED.value],
        "total_approved": counts[TaskStatus.APPROVED.value],
    }
