"""Tests for the offline sync queue."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from myhive.db.models import ActivityLog, Hive, Inspection, Task, TaskStatus, User
from myhive.inspections.service import InspectionService
from myhive.sync.schemas import SyncQueueItem, SyncResultStatus
from myhive.sync.service import SyncService


@pytest.fixture
def sync_service(db: Session, test_inspector: User) -> SyncService:
    """Create a sync service acting as the inspector."""
    weather = MagicMock()
    weather.configured = False
    inspections = InspectionService(
        db, test_inspector.org_id, test_inspector.id, test_inspector.role, weather
    )
    return SyncService(db, test_inspector.org_id, test_inspector.id, test_inspector.role, inspections)


def _item(hive: Hive, client_uuid: str, **payload) -> SyncQueueItem:
    body = {"hive_id": hive.id, "started_at": "2024-06-01T09:00:00Z"}
    body.update(payload)
    return SyncQueueItem(
        entity_type="inspection",
        client_uuid=client_uuid,
        action="create",
        payload_json=body,
    )


class TestProcessQueue:
    """Tests for replaying queued items."""

    def test_synced_then_duplicate(self, sync_service: SyncService, test_hive: Hive, db: Session):
        """Test a replayed item is stored once and then reported as duplicate."""
        item = _item(test_hive, "queued-1")

        first = sync_service.process_queue([item]).results[0]
        second = sync_service.process_queue([item]).results[0]

        assert first.status == SyncResultStatus.SYNCED
        assert second.status == SyncResultStatus.DUPLICATE
        assert second.server_id == first.server_id
        assert db.query(Inspection).count() == 1
        assert db.query(ActivityLog).filter(ActivityLog.action == "sync_inspection").count() == 1

    def test_failure_does_not_abort_batch(self, sync_service: SyncService, test_hive: Hive, other_hive: Hive):
        """Test failing items are reported and the rest of the batch still runs."""
        results = sync_service.process_queue(
            [
                _item(test_hive, "good-1"),
                _item(other_hive, "foreign-hive"),
                SyncQueueItem(
                    entity_type="inspection",
                    client_uuid="no-started-at",
                    action="create",
                    payload_json={"hive_id": test_hive.id},
                ),
                SyncQueueItem(entity_type="task", client_uuid="task-1", action="update"),
                _item(test_hive, "good-2"),
            ]
        ).results

        assert [r.status for r in results] == [
            SyncResultStatus.SYNCED,
            SyncResultStatus.FAILED,
            SyncResultStatus.FAILED,
            SyncResultStatus.FAILED,
            SyncResultStatus.SYNCED,
        ]
        assert results[1].error == "Hive not found"
        assert results[2].error.startswith("Validation error")
        assert results[3].error == "Unsupported sync action: task/update"

    def test_locked_inspection_completes_inspection_due_tasks(
        self, sync_service: SyncService, test_hive: Hive, db: Session, test_org
    ):
        """Test a finished inspection resolves the hive's pending inspection-due tasks."""
        due = Task(
            org_id=test_org.id,
            hive_id=test_hive.id,
            type="inspection_due",
            title="Inspect Hive One",
            due_date=date(2024, 6, 1),
            status=TaskStatus.PENDING,
        )
        other = Task(
            org_id=test_org.id,
            hive_id=test_hive.id,
            type="feeding",
            title="Feed",
            due_date=date(2024, 6, 1),
            status=TaskStatus.PENDING,
        )
        db.add_all([due, other])
        db.commit()

        result = sync_service.process_queue(
            [_item(test_hive, "finished-1", ended_at="2024-06-01T10:00:00Z")]
        ).results[0]

        db.expire_all()
        assert result.status == SyncResultStatus.SYNCED
        completed = db.query(Task).filter(Task.id == due.id).one()
        assert completed.status == TaskStatus.COMPLETED
        assert completed.inspection_id == result.server_id
        assert completed.completed_at is not None
        assert db.query(Task).filter(Task.id == other.id).one().status == TaskStatus.PENDING

    def test_open_inspection_leaves_tasks(
        self, sync_service: SyncService, test_hive: Hive, db: Session, test_org
    ):
        """Test an unfinished inspection does not complete inspection-due tasks."""
        db.add(
            Task(
                org_id=test_org.id,
                hive_id=test_hive.id,
                type="inspection_due",
                title="Inspect Hive One",
                due_date=date(2024, 6, 1),
                status=TaskStatus.PENDING,
            )
        )
        db.commit()

        sync_service.process_queue([_item(test_hive, "open-1")])

        db.expire_all()
        assert db.query(Task).one().status == TaskStatus.PENDING


class TestSyncRoute:
    """Tests for POST /api/sync/queue."""

    def test_queue_route(self, inspector_client: TestClient, test_hive: Hive):
        """Test the route reports one result per item in order."""
        response = inspector_client.post(
            "/api/sync/queue",
            json={
                "items": [
                    {
                        "entity_type": "inspection",
                        "client_uuid": "route-1",
                        "action": "create",
                        "payload_json": {"hive_id": test_hive.id, "started_at": "2024-06-01T09:00:00Z"},
                    },
                    {
                        "entity_type": "inspection",
                        "client_uuid": "route-1",
                        "action": "create",
                        "payload_json": {"hive_id": test_hive.id, "started_at": "2024-06-01T09:00:00Z"},
                    },
                ]
            },
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["status"] for r in results] == ["synced", "duplicate"]
        assert results[0]["server_id"] == results[1]["server_id"]

    def test_viewer_items_fail(self, viewer_client: TestClient, test_hive: Hive):
        """Test a viewer's queued creations fail individually."""
        response = viewer_client.post(
            "/api/sync/queue",
            json={
                "items": [
                    {
                        "entity_type": "inspection",
                        "client_uuid": "viewer-1",
                        "action": "create",
                        "payload_json": {"hive_id": test_hive.id, "started_at": "2024-06-01T09:00:00Z"},
                    }
                ]
            },
        )

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["status"] == "failed"
        assert result["error"] == "Insufficient permissions"
