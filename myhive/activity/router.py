"""Activity log API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from myhive.activity.schemas import ActivityListResponse
from myhive.activity.service import ActivityService, get_activity_service
from myhive.dependencies import CurrentOrgId, DbSession

router = APIRouter()


def get_service(db: DbSession, org_id: CurrentOrgId) -> ActivityService:
    """Get activity service dependency."""
    return get_activity_service(db, org_id)


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    service: Annotated[ActivityService, Depends(get_service)],
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = Query(50, ge=1, le=500),
):
    """List the organisation's activity log, newest first."""
    return service.list_activities(entity_type=entity_type, entity_id=entity_id, limit=limit)
