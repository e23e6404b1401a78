"""Schemas for maintenance templates, schedules and history."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from myhive.db.models import FrequencyType


# Templates


class TemplateCreate(BaseModel):
    """Schema for creating a maintenance template."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    task_type: str = Field(..., min_length=1, max_length=100)
    default_duration_days: int | None = Field(None, ge=0)
    instructions: str | None = None
    checklist_items: list[str] | None = None


class TemplateUpdate(BaseModel):
    """Schema for patching a maintenance template."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    task_type: str | None = Field(None, min_length=1, max_length=100)
    default_duration_days: int | None = Field(None, ge=0)
    instructions: str | None = None
    checklist_items: list[str] | None = None


class TemplateResponse(BaseModel):
    """Schema for template response."""

    id: str
    org_id: str
    name: str
    description: str | None
    task_type: str | None
    default_duration_days: int | None
    instructions: str | None
    checklist_items: list[str] | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class TemplateEnvelope(BaseModel):
    template: TemplateResponse


class TemplateListResponse(BaseModel):
    templates: list[TemplateResponse]


# Schedules


class ScheduleCreate(BaseModel):
    """Schema for creating a maintenance schedule.

    A schedule without ``hive_id`` applies to the whole organisation.
    """

    template_id: str | None = None
    hive_id: str | None = None
    name: str = Field(..., min_length=1, max_length=255)
    frequency_type: FrequencyType
    frequency_value: int = Field(1, ge=1)
    next_due_date: date
    is_active: bool = True


class ScheduleUpdate(BaseModel):
    """Schema for patching a maintenance schedule."""

    template_id: str | None = None
    hive_id: str | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    frequency_type: FrequencyType | None = None
    frequency_value: int | None = Field(None, ge=1)
    next_due_date: date | None = None
    is_active: bool | None = None


class ScheduleBulkCreate(BaseModel):
    """Schema for creating several schedules at once (all or nothing)."""

    schedules: list[ScheduleCreate] = Field(..., min_length=1)


class ScheduleResponse(BaseModel):
    """Schema for schedule response."""

    id: str
    org_id: str
    template_id: str | None
    template_name: str | None = None
    task_type: str | None = None
    hive_id: str | None
    hive_label: str | None = None
    name: str
    frequency_type: FrequencyType
    frequency_value: int
    next_due_date: date
    last_completed_date: date | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ScheduleEnvelope(BaseModel):
    schedule: ScheduleResponse


class ScheduleListResponse(BaseModel):
    schedules: list[ScheduleResponse]


class ScheduleBulkResponse(BaseModel):
    schedules: list[ScheduleResponse]
    count: int


class UpcomingResponse(BaseModel):
    upcoming: list[ScheduleResponse]


# Completion and history


class ScheduleComplete(BaseModel):
    """Schema for recording a completed schedule occurrence."""

    completed_date: date
    hive_id: str | None = None
    notes: str | None = None
    checklist_completed: list[bool] | None = None
    inspection_id: str | None = None


class HistoryResponse(BaseModel):
    """Schema for a maintenance history entry."""

    id: str
    org_id: str
    schedule_id: str | None
    schedule_name: str | None = None
    hive_id: str | None
    hive_label: str | None = None
    completed_by_user_id: str | None
    completed_by_name: str | None = None
    inspection_id: str | None
    completed_date: date
    notes: str | None
    checklist_completed: list[bool] | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class HistoryListResponse(BaseModel):
    history: list[HistoryResponse]


class ScheduleCompleteResponse(BaseModel):
    """Result of completing a schedule occurrence."""

    history: HistoryResponse
    next_due_date: date
    task_id: str | None = None


class GenerationSummaryResponse(BaseModel):
    """Result of one maintenance task generation run."""

    schedules_due: int
    tasks_created: int
    skipped_existing: int
    skipped_missing: int
    errors: list[dict]
