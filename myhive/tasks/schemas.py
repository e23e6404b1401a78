"""Schemas for tasks."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from myhive.db.models import TaskStatus


class TaskCreate(BaseModel):
    """Schema for creating a task."""

    hive_id: str | None = None
    inspection_id: str | None = None
    type: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    due_date: date
    assigned_user_id: str | None = None


class TaskUpdate(BaseModel):
    """Schema for patching a task (only sent fields are applied)."""

    status: TaskStatus | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    assigned_user_id: str | None = None


class TaskResponse(BaseModel):
    """Schema for task response."""

    id: str
    org_id: str
    hive_id: str | None
    hive_label: str | None = None
    hive_public_id: str | None = None
    inspection_id: str | None
    type: str
    title: str
    description: str | None
    due_date: date
    assigned_user_id: str | None
    assigned_user_name: str | None = None
    status: TaskStatus
    template_id: str | None
    recurring_schedule_id: str | None
    completed_at: datetime | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class TaskEnvelope(BaseModel):
    """Single-task response."""

    task: TaskResponse


class TaskListResponse(BaseModel):
    """Schema for task listing."""

    tasks: list[TaskResponse]
