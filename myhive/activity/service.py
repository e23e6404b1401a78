"""Activity log service."""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from myhive.activity.schemas import ActivityListResponse, ActivityResponse
from myhive.db.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    org_id: str | None,
    actor_user_id: str | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Record an audit entry without failing the calling operation.

    The entry is written in a savepoint of the caller's transaction and is
    committed together with it. Store errors are logged and discarded.

    Args:
        db: Database session of the calling operation.
        org_id: Organisation the action happened in.
        actor_user_id: Acting user, None for system jobs.
        action: Action name (e.g. "create_inspection").
        entity_type: Type of the affected entity.
        entity_id: ID of the affected entity.
        metadata: Free-form context.
    """
    try:
        with db.begin_nested():
            db.add(
                ActivityLog(
                    org_id=org_id,
                    actor_user_id=actor_user_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    metadata_json=metadata or {},
                )
            )
    except SQLAlchemyError as e:
        logger.error(f"Failed to log activity {action} for {entity_type} {entity_id}: {e}")


class ActivityService:
    """Read access to an organisation's activity log."""

    def __init__(self, db: Session, org_id: str):
        self.db = db
        self.org_id = org_id

    def list_activities(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        limit: int = 50,
    ) -> ActivityListResponse:
        """List activity entries, newest first.

        Args:
            entity_type: Only entries about this entity type.
            entity_id: Only entries about this entity.
            limit: Maximum number of entries.

        Returns:
            ActivityListResponse: Matching entries.
        """
        query = (
            self.db.query(ActivityLog)
            .options(joinedload(ActivityLog.actor))
            .filter(ActivityLog.org_id == self.org_id)
        )
        if entity_type:
            query = query.filter(ActivityLog.entity_type == entity_type)
        if entity_id:
            query = query.filter(ActivityLog.entity_id == entity_id)

        entries = query.order_by(ActivityLog.created_at.desc()).limit(limit).all()

        return ActivityListResponse(
            activities=[
                ActivityResponse(
                    id=e.id,
                    actor_user_id=e.actor_user_id,
                    actor_name=e.actor.name if e.actor else None,
                    action=e.action,
                    entity_type=e.entity_type,
                    entity_id=e.entity_id,
                    metadata_json=e.metadata_json,
                    created_at=e.created_at,
                )
                for e in entries
            ]
        )


def get_activity_service(db: Session, org_id: str) -> ActivityService:
    """Get activity service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.

    Returns:
        ActivityService: Service instance.
    """
    return ActivityService(db, org_id)
