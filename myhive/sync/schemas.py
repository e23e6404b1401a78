"""Schemas for the offline sync queue."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SyncAction(str, Enum):
    """Queued client action."""

    CREATE = "create"
    UPDATE = "update"


class SyncResultStatus(str, Enum):
    """Outcome of one queued item."""

    SYNCED = "synced"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class SyncQueueItem(BaseModel):
    """One action recorded by a client while offline."""

    entity_type: str
    entity_id: str | None = None
    client_uuid: str = Field(..., min_length=1, max_length=36)
    action: SyncAction
    payload_json: dict[str, Any] = Field(default_factory=dict)


class SyncQueueRequest(BaseModel):
    """Batch of queued items, replayed in order."""

    items: list[SyncQueueItem]


class SyncItemResult(BaseModel):
    """Result of replaying one item."""

    client_uuid: str
    status: SyncResultStatus
    server_id: str | None = None
    error: str | None = None


class SyncQueueResponse(BaseModel):
    """Per-item results, in request order."""

    results: list[SyncItemResult]
