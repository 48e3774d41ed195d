from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskBase(BaseModel):
    title: str
    description: str = ""


class TaskCreate(TaskBase):
    task_order: Optional[int] = Field(default=None, ge=1)


class TaskOut(TaskBase):
    id: str
    task_order: int
    assigned_count: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
