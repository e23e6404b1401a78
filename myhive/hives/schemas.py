"""Schemas for hives."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from myhive.db.models import HiveStatus, TaskStatus


class HiveCreate(BaseModel):
    """Schema for creating a hive."""

    public_id: str = Field(..., min_length=1, max_length=50)
    label: str = Field(..., min_length=1, max_length=255)
    apiary_id: str | None = None
    status: HiveStatus = HiveStatus.ACTIVE


class HiveUpdate(BaseModel):
    """Schema for patching a hive (only sent fields are applied)."""

    label: str | None = Field(None, min_length=1, max_length=255)
    status: HiveStatus | None = None
    apiary_id: str | None = None


class HiveResponse(BaseModel):
    """Schema for hive response."""

    id: str
    org_id: str
    apiary_id: str | None
    apiary_name: str | None = None
    public_id: str
    label: str
    status: HiveStatus
    created_at: datetime | None
    inspection_count: int = 0
    last_inspection_at: datetime | None = None

    model_config = {"from_attributes": True}


class HiveInspectionSummary(BaseModel):
    """Recent inspection shown on the hive page."""

    id: str
    started_at: datetime
    ended_at: datetime | None
    inspector_user_id: str | None
    notes: str | None
    locked_at: datetime | None

    model_config = {"from_attributes": True}


class HiveTaskSummary(BaseModel):
    """Open task shown on the hive page."""

    id: str
    type: str
    title: str
    due_date: date
    status: TaskStatus

    model_config = {"from_attributes": True}


class HiveEnvelope(BaseModel):
    """Single-hive response."""

    hive: HiveResponse


class HiveDetailResponse(BaseModel):
    """Hive with its recent inspections and open tasks."""

    hive: HiveResponse
    inspections: list[HiveInspectionSummary]
    tasks: list[HiveTaskSummary]


class HiveListResponse(BaseModel):
    """Schema for hive listing."""

    hives: list[HiveResponse]


class HivePublicResponse(BaseModel):
    """Answer to an anonymous public-ID lookup."""

    requires_auth: bool
    message: str
