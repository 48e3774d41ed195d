from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func

from app.database.base import Base


class Assignment(Base):
    __tablename__ = "intern_tasks"
    __table_args__ = (
        UniqueConstraint("intern_id", "task_id", name="uq_intern_tasks_intern_task"),
        Index("ix_intern_tasks_intern_status", "intern_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    intern_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="locked", index=True)
    submission_content = Column(Text, nullable=True)
    admin_remarks = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(36), nullable=True)
    # Incrementado a cada escrita de status (escrita condicional).
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
