"""Hive service layer."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from myhive.activity.service import log_activity
from myhive.db.models import MANAGING_ROLES, Apiary, Hive, Inspection, Task, TaskStatus, UserRole
from myhive.db.patch import patch_values
from myhive.errors import Conflict, Forbidden, NotFound
from myhive.hives.schemas import (
    HiveCreate,
    HiveDetailResponse,
    HiveInspectionSummary,
    HiveListResponse,
    HiveResponse,
    HiveTaskSummary,
    HiveUpdate,
)

logger = logging.getLogger(__name__)

RECENT_INSPECTIONS_LIMIT = 10
OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class HiveService:
    """Service class for hive operations.

    ``public_id`` is the identifier printed on the hive (NFC tag or label) and
    is unique within an organisation.

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
    ):
        self.db = db
        self.org_id = org_id
        self.user_id = user_id
        self.role = role

    def _require_manager(self) -> None:
        if self.role not in MANAGING_ROLES:
            raise Forbidden()

    def _check_apiary(self, apiary_id: str | None) -> None:
        if apiary_id and not (
            self.db.query(Apiary.id)
            .filter(Apiary.id == apiary_id, Apiary.org_id == self.org_id)
            .first()
        ):
            raise NotFound("Apiary not found")

    def _public_id_taken(self, public_id: str) -> bool:
        return (
            self.db.query(Hive.id)
            .filter(Hive.org_id == self.org_id, Hive.public_id == public_id)
            .first()
            is not None
        )

    def _with_stats(self) -> Query:
        """Hives of the organisation with their inspection count and latest start."""
        inspection_count = (
            select(func.count(Inspection.id))
            .where(Inspection.hive_id == Hive.id)
            .correlate(Hive)
            .scalar_subquery()
        )
        last_inspection_at = (
            select(func.max(Inspection.started_at))
            .where(Inspection.hive_id == Hive.id)
            .correlate(Hive)
            .scalar_subquery()
        )
        return (
            self.db.query(
                Hive,
                inspection_count.label("inspection_count"),
                last_inspection_at.label("last_inspection_at"),
            )
            .options(joinedload(Hive.apiary))
            .filter(Hive.org_id == self.org_id)
        )

    def list_hives(self, apiary_id: str | None = None) -> HiveListResponse:
        """List hives ordered by label.

        Args:
            apiary_id: Only hives standing in this apiary.

        Returns:
            HiveListResponse: Matching hives with inspection stats.
        """
        query = self._with_stats()
        if apiary_id:
            query = query.filter(Hive.apiary_id == apiary_id)

        rows = query.order_by(Hive.label).all()
        return HiveListResponse(
            hives=[self.to_response(hive, count, last) for hive, count, last in rows]
        )

    def get_hive(self, hive_id: str) -> Hive:
        """Get a hive of the current organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        hive = (
            self.db.query(Hive)
            .options(joinedload(Hive.apiary))
            .filter(Hive.id == hive_id, Hive.org_id == self.org_id)
            .first()
        )
        if hive is None:
            raise NotFound("Hive not found")
        return hive

    def get_hive_by_public_id(self, public_id: str) -> Hive:
        """Get a hive of the current organisation by its printed identifier.

        Raises:
            NotFound: If no hive of the organisation carries it.
        """
        hive = (
            self.db.query(Hive)
            .options(joinedload(Hive.apiary))
            .filter(Hive.public_id == public_id, Hive.org_id == self.org_id)
            .first()
        )
        if hive is None:
            raise NotFound("Hive not found")
        return hive

    def get_hive_detail(self, hive_id: str) -> HiveDetailResponse:
        """Get a hive with its recent inspections and open tasks.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        row = self._with_stats().filter(Hive.id == hive_id).first()
        if row is None:
            raise NotFound("Hive not found")
        hive, count, last = row

        inspections = (
            self.db.query(Inspection)
            .filter(Inspection.hive_id == hive.id, Inspection.org_id == self.org_id)
            .order_by(Inspection.started_at.desc())
            .limit(RECENT_INSPECTIONS_LIMIT)
            .all()
        )
        tasks = (
            self.db.query(Task)
            .filter(
                Task.hive_id == hive.id,
                Task.org_id == self.org_id,
                Task.status.in_(OPEN_TASK_STATUSES),
            )
            .order_by(Task.due_date.asc())
            .all()
        )
        return HiveDetailResponse(
            hive=self.to_response(hive, count, last),
            inspections=[HiveInspectionSummary.model_validate(i) for i in inspections],
            tasks=[HiveTaskSummary.model_validate(t) for t in tasks],
        )

    def create_hive(self, data: HiveCreate) -> Hive:
        """Create a hive.

        Args:
            data: Hive creation data.

        Returns:
            Hive: Created hive.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the apiary is not in the organisation.
            Conflict: If the organisation already has a hive with this public_id.
        """
        self._require_manager()
        self._check_apiary(data.apiary_id)
        if self._public_id_taken(data.public_id):
            raise Conflict("Public ID already exists")

        hive = Hive(
            org_id=self.org_id,
            apiary_id=data.apiary_id or None,
            public_id=data.public_id,
            label=data.label,
            status=data.status,
        )
        try:
            with self.db.begin_nested():
                self.db.add(hive)
        except IntegrityError:
            # Concurrent creation with the same public_id
            raise Conflict("Public ID already exists")

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_hive",
            "hive",
            hive.id,
            {"public_id": hive.public_id, "label": hive.label},
        )
        self.db.commit()
        logger.info(f"Created hive {hive.public_id} in organisation {self.org_id}")
        return self.get_hive(hive.id)

    def update_hive(self, hive_id: str, data: HiveUpdate) -> Hive:
        """Patch a hive's label, status or apiary.

        Args:
            hive_id: Hive UUID.
            data: Fields to change.

        Returns:
            Hive: Updated hive.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the hive or the new apiary is not in the organisation.
            NoFieldsToUpdate: If the patch carries no fields.
        """
        self._require_manager()
        hive = self.get_hive(hive_id)
        values = patch_values(data)

        if "label" in values and values["label"] is None:
            values.pop("label")
        if "status" in values and values["status"] is None:
            values.pop("status")
        if "apiary_id" in values:
            values["apiary_id"] = values["apiary_id"] or None
            self._check_apiary(values["apiary_id"])

        for field, value in values.items():
            setattr(hive, field, value)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_hive",
            "hive",
            hive_id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        return self.get_hive(hive_id)

    def to_response(
        self,
        hive: Hive,
        inspection_count: int = 0,
        last_inspection_at: datetime | None = None,
    ) -> HiveResponse:
        """Convert a hive to its response schema."""
        response = HiveResponse.model_validate(hive)
        if hive.apiary:
            response.apiary_name = hive.apiary.name
        response.inspection_count = inspection_count or 0
        response.last_inspection_at = last_inspection_at
        return response


def public_hive_exists(db: Session, public_id: str) -> bool:
    """Whether any organisation has a hive with this public_id."""
    return db.query(Hive.id).filter(Hive.public_id == public_id).first() is not None


def get_hive_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> HiveService:
    """Get hive service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        HiveService: Service instance.
    """
    return HiveService(db, org_id, user_id, role)
