"""Offline sync API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from myhive.dependencies import CurrentUser, DbSession
from myhive.sync.schemas import SyncQueueRequest, SyncQueueResponse
from myhive.sync.service import SyncService, get_sync_service

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> SyncService:
    """Get sync service dependency."""
    return get_sync_service(db, current_user.org_id, current_user.id, current_user.role)


@router.post("/queue", response_model=SyncQueueResponse)
def sync_queue(
    data: SyncQueueRequest,
    service: Annotated[SyncService, Depends(get_service)],
):
    """Replay items queued by an offline client.

    Each item is reported as ``synced``, ``duplicate`` or ``failed``; a failed
    item does not stop the batch. Plain function so replayed weather lookups
    run in the threadpool.
    """
    return service.process_queue(data.items)
