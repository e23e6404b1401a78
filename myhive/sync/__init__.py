"""Offline sync queue module."""

from myhive.sync.router import router
from myhive.sync.schemas import SyncItemResult, SyncQueueItem, SyncQueueRequest, SyncQueueResponse
from myhive.sync.service import SyncService, get_sync_service

__all__ = [
    "router",
    "SyncItemResult",
    "SyncQueueItem",
    "SyncQueueRequest",
    "SyncQueueResponse",
    "SyncService",
    "get_sync_service",
]
