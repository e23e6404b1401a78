"""Schemas for apiaries."""

from datetime import datetime

from pydantic import BaseModel, Field


class ApiaryCreate(BaseModel):
    """Schema for creating an apiary."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)


class ApiaryUpdate(BaseModel):
    """Schema for patching an apiary (only sent fields are applied)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)


class ApiaryResponse(BaseModel):
    """Schema for apiary response."""

    id: str
    org_id: str
    name: str
    description: str | None
    lat: float | None
    lng: float | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ApiaryEnvelope(BaseModel):
    """Single-apiary response."""

    apiary: ApiaryResponse


class ApiaryListResponse(BaseModel):
    """Schema for apiary listing."""

    apiaries: list[ApiaryResponse]
