"""Schemas for inspections."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC, the storage convention."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


class BroodPattern(str, Enum):
    """Brood pattern quality."""

    EXCELLENT = "excellent"
    GOOD = "good"
    SPOTTY = "spotty"
    POOR = "poor"


class Population(str, Enum):
    """Colony population estimate."""

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class StoreLevel(str, Enum):
    """Honey or pollen store level."""

    HEAVY = "heavy"
    MODERATE = "moderate"
    LIGHT = "light"
    NONE = "none"


class Temperament(str, Enum):
    """Colony temperament."""

    CALM = "calm"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class QueenSection(BaseModel):
    present: bool | None = None
    marked: bool | None = None
    clipped: bool | None = None
    notes: str | None = None


class BroodSection(BaseModel):
    frames: float | None = Field(None, ge=0, le=10)
    pattern: BroodPattern | None = None
    notes: str | None = None


class StrengthSection(BaseModel):
    frames: float | None = Field(None, ge=0, le=10)
    population: Population | None = None
    notes: str | None = None


class StoresSection(BaseModel):
    honey: StoreLevel | None = None
    pollen: StoreLevel | None = None
    notes: str | None = None


class TemperamentSection(BaseModel):
    rating: Temperament | None = None
    notes: str | None = None


class HealthSection(BaseModel):
    pests: list[str] | None = None
    diseases: list[str] | None = None
    notes: str | None = None


class InspectionSections(BaseModel):
    """Structured inspection sections; all optional, unknown keys are dropped."""

    queen: QueenSection | None = None
    brood: BroodSection | None = None
    strength: StrengthSection | None = None
    stores: StoresSection | None = None
    temperament: TemperamentSection | None = None
    health: HealthSection | None = None

    def to_json(self) -> dict[str, Any]:
        """Dump the sections the client actually sent, in JSON-safe form."""
        return self.model_dump(mode="json", exclude_unset=True)


class InspectionCreate(BaseModel):
    """Schema for creating an inspection.

    ``client_uuid`` is generated on the device that recorded the inspection
    and is the idempotency key for resubmissions.
    """

    hive_id: str = Field(..., description="Inspected hive UUID")
    started_at: UtcDatetime
    ended_at: UtcDatetime | None = Field(None, description="Setting this locks the inspection")
    location_lat: float | None = Field(None, ge=-90, le=90)
    location_lng: float | None = Field(None, ge=-180, le=180)
    location_accuracy_m: float | None = Field(None, ge=0)
    offline_created_at: UtcDatetime | None = None
    client_uuid: str = Field(..., min_length=1, max_length=36)
    sections_json: InspectionSections | None = None
    notes: str | None = None


class InspectionUpdate(BaseModel):
    """Schema for patching an open inspection.

    Only fields present in the request are applied; explicit ``null`` counts
    as present.
    """

    ended_at: UtcDatetime | None = None
    sections_json: InspectionSections | None = None
    notes: str | None = None

    def to_values(self) -> dict[str, Any]:
        """Column values for the fields present in the request."""
        values: dict[str, Any] = {}
        if "ended_at" in self.model_fields_set:
            values["ended_at"] = self.ended_at
        if "sections_json" in self.model_fields_set:
            values["sections_json"] = self.sections_json.to_json() if self.sections_json else None
        if "notes" in self.model_fields_set:
            values["notes"] = self.notes or None
        return values


class InspectionResponse(BaseModel):
    """Schema for inspection response."""

    id: str
    org_id: str
    hive_id: str
    hive_label: str | None = None
    hive_public_id: str | None = None
    inspector_user_id: str | None
    inspector_name: str | None = None
    started_at: datetime
    ended_at: datetime | None
    location_lat: float | None
    location_lng: float | None
    location_accuracy_m: float | None
    client_uuid: str
    offline_created_at: datetime | None
    sections_json: dict[str, Any] | None
    notes: str | None
    weather_json: dict[str, Any] | None
    locked_at: datetime | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class InspectionEnvelope(BaseModel):
    """Create/get/update response: the inspection plus the dedup flag."""

    inspection: InspectionResponse
    duplicate: bool = False


class InspectionListResponse(BaseModel):
    """Schema for inspection listing."""

    inspections: list[InspectionResponse]


class WeatherResponse(BaseModel):
    """Schema for a refreshed weather snapshot."""

    weather: dict[str, Any]
