from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssignmentOut(BaseModel):
    id: str
    intern_id: str
    task_id: str
    task_title: str = ""
    task_description: str = ""
    task_order: int = 0
    status: str
    submission_content: Optional[str] = None
    admin_remarks: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    version: int = 1

    model_config = ConfigDict(from_attributes=True)


class ReconcileRequest(BaseModel):
    task_ids: list[str]


class ReconcileOut(BaseModel):
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    assignments: list[AssignmentOut] = Field(default_factory=list)


class SubmissionCreate(BaseModel):
    content: str
    version: Optional[int] = None


class ReviewCreate(BaseModel):
    decision: Literal["approve", "reject"]
    remarks: Optional[str] = None
    version: Optional[int] = None


class SubmissionOut(AssignmentOut):
    intern_name: str = ""
    intern_email: str = ""


class InternProgressOut(BaseModel):
    total: int = 0
    locked: int = 0
    in_progress: int = 0
    submitted: int = 0
    approved: int = 0
    rejected: int = 0
    progress_percent: float = 0.0


class AdminStatsOut(BaseModel):
    total_interns: int = 0
    completed_registrations: int = 0
    pending_approvals: int = 0
    total_approved: int = 0
