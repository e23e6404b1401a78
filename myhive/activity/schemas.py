"""Schemas for the activity log."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActivityResponse(BaseModel):
    """Schema for one activity entry."""

    id: str
    actor_user_id: str | None
    actor_name: str | None = None
    action: str
    entity_type: str | None
    entity_id: str | None
    metadata_json: dict[str, Any] | None
    created_at: datetime


class ActivityListResponse(BaseModel):
    """Schema for the activity listing."""

    activities: list[ActivityResponse]
