"""Tests for the hive service."""

from datetime import date, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from myhive.db.models import (
    ActivityLog,
    Apiary,
    Hive,
    HiveStatus,
    Inspection,
    Organisation,
    Task,
    TaskStatus,
    User,
)
from myhive.errors import Conflict, Forbidden, NoFieldsToUpdate, NotFound
from myhive.hives.schemas import HiveCreate, HiveUpdate
from myhive.hives.service import HiveService, public_hive_exists


def _service(db: Session, user: User) -> HiveService:
    return HiveService(db, user.org_id, user.id, user.role)


@pytest.fixture
def test_apiary(db: Session, test_org: Organisation) -> Apiary:
    """Create an apiary in the test organisation."""
    apiary = Apiary(org_id=test_org.id, name="Orchard")
    db.add(apiary)
    db.commit()
    db.refresh(apiary)
    return apiary


class TestCreateHive:
    """Tests for creating hives."""

    def test_manager_creates_hive(self, db: Session, test_manager: User, test_apiary: Apiary):
        """Test a manager creates a hive in an apiary and the action is logged."""
        hive = _service(db, test_manager).create_hive(
            HiveCreate(public_id="H-042", label="Orchard Two", apiary_id=test_apiary.id)
        )

        assert hive.org_id == test_manager.org_id
        assert hive.status == HiveStatus.ACTIVE
        assert hive.apiary.name == "Orchard"
        entry = db.query(ActivityLog).filter(ActivityLog.action == "create_hive").one()
        assert entry.entity_id == hive.id
        assert entry.metadata_json == {"public_id": "H-042", "label": "Orchard Two"}

    def test_duplicate_public_id_in_org(self, db: Session, test_manager: User, test_hive: Hive):
        """Test a public_id already used in the organisation is a conflict."""
        with pytest.raises(Conflict, match="Public ID already exists"):
            _service(db, test_manager).create_hive(HiveCreate(public_id="H-001", label="Again"))

    def test_public_id_reused_across_orgs(self, db: Session, test_manager: User, other_hive: Hive):
        """Test another organisation's public_id does not block creation."""
        hive = _service(db, test_manager).create_hive(HiveCreate(public_id="H-001", label="Mine"))

        assert hive.org_id != other_hive.org_id
        assert db.query(Hive).filter(Hive.public_id == "H-001").count() == 2

    def test_concurrent_duplicate_is_conflict(self, db: Session, test_manager: User, test_hive: Hive):
        """Test a uniqueness violation at insert time is reported as a conflict."""
        service = _service(db, test_manager)

        with patch.object(HiveService, "_public_id_taken", return_value=False):
            with pytest.raises(Conflict):
                service.create_hive(HiveCreate(public_id="H-001", label="Racer"))

        assert db.query(Hive).filter(Hive.org_id == test_manager.org_id).count() == 1

    def test_inspector_forbidden(self, db: Session, test_inspector: User):
        """Test inspectors cannot create hives."""
        with pytest.raises(Forbidden):
            _service(db, test_inspector).create_hive(HiveCreate(public_id="H-9", label="Nope"))

    def test_foreign_apiary(self, db: Session, test_manager: User, other_org: Organisation):
        """Test an apiary of another organisation is not found."""
        foreign = Apiary(org_id=other_org.id, name="Hilltop")
        db.add(foreign)
        db.commit()

        with pytest.raises(NotFound, match="Apiary not found"):
            _service(db, test_manager).create_hive(
                HiveCreate(public_id="H-9", label="Nope", apiary_id=foreign.id)
            )


class TestReadHives:
    """Tests for listing and reading hives."""

    def test_list_with_inspection_stats(
        self, db: Session, test_viewer: User, test_hive: Hive, other_hive: Hive, test_org: Organisation
    ):
        """Test listing is org-scoped, ordered by label and carries inspection stats."""
        db.add(Hive(org_id=test_org.id, public_id="H-000", label="Alpha"))
        db.add_all(
            [
                Inspection(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    started_at=datetime(2024, 5, 1, 9, 0),
                    client_uuid="stats-1",
                ),
                Inspection(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    started_at=datetime(2024, 6, 1, 9, 0),
                    client_uuid="stats-2",
                ),
            ]
        )
        db.commit()

        hives = _service(db, test_viewer).list_hives().hives

        assert [h.label for h in hives] == ["Alpha", "Hive One"]
        assert hives[0].inspection_count == 0
        assert hives[0].last_inspection_at is None
        assert hives[1].inspection_count == 2
        assert hives[1].last_inspection_at == datetime(2024, 6, 1, 9, 0)

    def test_list_by_apiary(self, db: Session, test_viewer: User, test_hive: Hive, test_apiary: Apiary):
        """Test filtering by apiary."""
        db.add(Hive(org_id=test_viewer.org_id, apiary_id=test_apiary.id, public_id="H-5", label="Placed"))
        db.commit()

        hives = _service(db, test_viewer).list_hives(apiary_id=test_apiary.id).hives

        assert [h.label for h in hives] == ["Placed"]
        assert hives[0].apiary_name == "Orchard"

    def test_other_org_not_found(self, db: Session, test_viewer: User, other_hive: Hive):
        """Test another organisation's hive is not found."""
        service = _service(db, test_viewer)

        with pytest.raises(NotFound):
            service.get_hive(other_hive.id)
        with pytest.raises(NotFound):
            service.get_hive_detail(other_hive.id)

    def test_detail_lists_recent_inspections_and_open_tasks(
        self, db: Session, test_viewer: User, test_hive: Hive, test_org: Organisation
    ):
        """Test the detail view shows inspections newest first and only open tasks."""
        db.add_all(
            [
                Inspection(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    started_at=datetime(2024, 5, 1, 9, 0),
                    client_uuid="detail-1",
                ),
                Inspection(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    started_at=datetime(2024, 6, 1, 9, 0),
                    client_uuid="detail-2",
                ),
                Task(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    type="feeding",
                    title="Feed",
                    due_date=date(2024, 6, 10),
                    status=TaskStatus.IN_PROGRESS,
                ),
                Task(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    type="treatment",
                    title="Treat",
                    due_date=date(2024, 6, 5),
                    status=TaskStatus.PENDING,
                ),
                Task(
                    org_id=test_org.id,
                    hive_id=test_hive.id,
                    type="feeding",
                    title="Done",
                    due_date=date(2024, 6, 1),
                    status=TaskStatus.COMPLETED,
                ),
            ]
        )
        db.commit()

        detail = _service(db, test_viewer).get_hive_detail(test_hive.id)

        assert detail.hive.public_id == "H-001"
        assert detail.hive.inspection_count == 2
        assert [i.started_at for i in detail.inspections] == [
            datetime(2024, 6, 1, 9, 0),
            datetime(2024, 5, 1, 9, 0),
        ]
        assert [t.title for t in detail.tasks] == ["Treat", "Feed"]

    def test_public_id_lookup(self, db: Session, test_viewer: User, test_hive: Hive, other_hive: Hive):
        """Test public_id lookups resolve within the organisation."""
        assert _service(db, test_viewer).get_hive_by_public_id("H-001").id == test_hive.id
        assert public_hive_exists(db, "H-001") is True
        assert public_hive_exists(db, "H-404") is False


class TestUpdateHive:
    """Tests for patching hives."""

    def test_update_fields(self, db: Session, test_manager: User, test_hive: Hive, test_apiary: Apiary):
        """Test label, status and apiary can be changed."""
        hive = _service(db, test_manager).update_hive(
            test_hive.id,
            HiveUpdate(label="Renamed", status=HiveStatus.INACTIVE, apiary_id=test_apiary.id),
        )

        assert hive.label == "Renamed"
        assert hive.status == HiveStatus.INACTIVE
        assert hive.apiary_id == test_apiary.id
        assert db.query(ActivityLog).filter(ActivityLog.action == "update_hive").count() == 1

    def test_clear_apiary(self, db: Session, test_manager: User, test_hive: Hive, test_apiary: Apiary):
        """Test sending an empty apiary detaches the hive."""
        test_hive.apiary_id = test_apiary.id
        db.commit()

        hive = _service(db, test_manager).update_hive(
            test_hive.id, HiveUpdate.model_validate({"apiary_id": ""})
        )

        assert hive.apiary_id is None

    def test_empty_patch(self, db: Session, test_manager: User, test_hive: Hive):
        """Test a patch without fields is rejected."""
        with pytest.raises(NoFieldsToUpdate):
            _service(db, test_manager).update_hive(test_hive.id, HiveUpdate())

    def test_other_org_not_found(self, db: Session, test_manager: User, other_hive: Hive):
        """Test another organisation's hive cannot be patched."""
        with pytest.raises(NotFound):
            _service(db, test_manager).update_hive(other_hive.id, HiveUpdate(label="Mine now"))

    def test_inspector_forbidden(self, db: Session, test_inspector: User, test_hive: Hive):
        """Test inspectors cannot patch hives."""
        with pytest.raises(Forbidden):
            _service(db, test_inspector).update_hive(test_hive.id, HiveUpdate(label="Nope"))
