"""Offline sync queue service.

Replays actions a client queued while offline. Every item is handled on its
own: a failing item is reported and the rest of the batch continues.
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from myhive.activity.service import log_activity
from myhive.db.models import Inspection, Task, TaskStatus, UserRole, utcnow
from myhive.db.patch import apply_patch
from myhive.errors import MyHiveError
from myhive.inspections.schemas import InspectionCreate
from myhive.inspections.service import InspectionService
from myhive.sync.schemas import (
    SyncAction,
    SyncItemResult,
    SyncQueueItem,
    SyncQueueResponse,
    SyncResultStatus,
)

logger = logging.getLogger(__name__)

INSPECTION_DUE_TASK_TYPE = "inspection_due"


class SyncService:
    """Service replaying queued client actions for one user.

    Attributes:
        db: Database session.
        org_id: Current organisation ID.
        user_id: Current user ID.
        role: Current user's role.
    """

    def __init__(
        self,
        db: Session,
        org_id: str,
        user_id: str | None = None,
        role: UserRole | None = None,
        inspections: InspectionService | None = None,
    ):
        self.db = db
        self.org_id = org_id
        self.user_id = user_id
        self.role = role
        self.inspections = inspections or InspectionService(db, org_id, user_id, role)

    def process_queue(self, items: list[SyncQueueItem]) -> SyncQueueResponse:
        """Replay queued items in order.

        Args:
            items: Queued items.

        Returns:
            SyncQueueResponse: One result per item.
        """
        results = []
        for item in items:
            try:
                results.append(self._process_item(item))
            except PydanticValidationError as e:
                self.db.rollback()
                results.append(self._failed(item, f"Validation error: {e.error_count()} invalid field(s)"))
            except MyHiveError as e:
                self.db.rollback()
                results.append(self._failed(item, e.message))
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error syncing item {item.client_uuid}: {e}")
                results.append(self._failed(item, "Database error"))

        synced = sum(1 for r in results if r.status == SyncResultStatus.SYNCED)
        logger.info(f"Sync queue processed {len(items)} item(s), {synced} synced")
        return SyncQueueResponse(results=results)

    def _failed(self, item: SyncQueueItem, error: str) -> SyncItemResult:
        return SyncItemResult(
            client_uuid=item.client_uuid,
            status=SyncResultStatus.FAILED,
            error=error,
        )

    def _process_item(self, item: SyncQueueItem) -> SyncItemResult:
        if item.entity_type == "inspection" and item.action == SyncAction.CREATE:
            return self._sync_inspection_create(item)
        return self._failed(
            item, f"Unsupported sync action: {item.entity_type}/{item.action.value}"
        )

    def _sync_inspection_create(self, item: SyncQueueItem) -> SyncItemResult:
        data = InspectionCreate.model_validate({**item.payload_json, "client_uuid": item.client_uuid})
        inspection, is_duplicate = self.inspections.create_inspection(data)

        if is_duplicate:
            return SyncItemResult(
                client_uuid=item.client_uuid,
                status=SyncResultStatus.DUPLICATE,
                server_id=inspection.id,
            )

        if inspection.locked_at is not None:
            self._complete_inspection_due_tasks(inspection)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "sync_inspection",
            "inspection",
            inspection.id,
            {"client_uuid": item.client_uuid},
        )
        self.db.commit()

        return SyncItemResult(
            client_uuid=item.client_uuid,
            status=SyncResultStatus.SYNCED,
            server_id=inspection.id,
        )

    def _complete_inspection_due_tasks(self, inspection: Inspection) -> int:
        """Complete the hive's pending inspection-due tasks (best-effort).

        Args:
            inspection: The finished inspection that resolves them.

        Returns:
            int: Number of tasks completed.
        """
        try:
            with self.db.begin_nested():
                completed = apply_patch(
                    self.db,
                    Task,
                    {
                        "status": TaskStatus.COMPLETED,
                        "completed_at": utcnow(),
                        "inspection_id": inspection.id,
                        "occurrence_key": None,
                    },
                    Task.org_id == self.org_id,
                    Task.hive_id == inspection.hive_id,
                    Task.type == INSPECTION_DUE_TASK_TYPE,
                    Task.status == TaskStatus.PENDING,
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to auto-complete inspection_due tasks for hive {inspection.hive_id}: {e}")
            return 0

        if completed:
            logger.info(f"Auto-completed {completed} inspection_due task(s) for hive {inspection.hive_id}")
        return completed


def get_sync_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> SyncService:
    """Get sync service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        SyncService: Service instance.
    """
    return SyncService(db, org_id, user_id, role)
