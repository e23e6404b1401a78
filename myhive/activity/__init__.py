"""Activity log module (audit trail)."""

from myhive.activity.router import router
from myhive.activity.schemas import ActivityListResponse, ActivityResponse
from myhive.activity.service import ActivityService, get_activity_service, log_activity

__all__ = [
    "router",
    "ActivityListResponse",
    "ActivityResponse",
    "ActivityService",
    "get_activity_service",
    "log_activity",
]
