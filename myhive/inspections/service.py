"""Inspection service: idempotent offline creation and lock-on-end."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from myhive.activity.service import log_activity
from myhive.db.models import AUTHORING_ROLES, Hive, Inspection, UserRole, utcnow
from myhive.db.patch import apply_patch
from myhive.errors import (
    Conflict,
    Forbidden,
    Locked,
    NoFieldsToUpdate,
    NotFound,
    UpstreamUnavailable,
    ValidationError,
)
from myhive.inspections.schemas import (
    InspectionCreate,
    InspectionListResponse,
    InspectionResponse,
    InspectionUpdate,
)
from myhive.weather.service import WeatherService, get_weather_service

logger = logging.getLogger(__name__)


class InspectionService:
    """Service for inspections of one organisation.

    Creation is idempotent on the client-generated ``client_uuid``: a
    resubmission returns the stored inspection flagged as a duplicate.
    Setting ``ended_at`` locks the inspection for good.

    Attributes:
        db: Database session.
        org_id: Caller's organisation ID.
        user_id: Caller's user ID.
        role: Caller's role.
        weather: Weather client used for best-effort capture.
    """

    def __init__(
        self,
        db: Session,
        org_id: str,
        user_id: str | None = None,
        role: UserRole | None = None,
        weather: WeatherService | None = None,
    ):
        """Initialize inspection service.

        Args:
            db: Database session.
            org_id: Caller's organisation ID.
            user_id: Caller's user ID.
            role: Caller's role.
            weather: Weather client (defaults to the shared instance).
        """
        self.db = db
        self.org_id = org_id
        self.user_id = user_id
        self.role = role
        self.weather = weather or get_weather_service()

    def _require_author(self) -> None:
        if self.role not in AUTHORING_ROLES:
            raise Forbidden()

    def _get(self, inspection_id: str) -> Inspection | None:
        return (
            self.db.query(Inspection)
            .filter(Inspection.id == inspection_id, Inspection.org_id == self.org_id)
            .first()
        )

    def _find_by_client_uuid(self, client_uuid: str) -> Inspection | None:
        return self.db.query(Inspection).filter(Inspection.client_uuid == client_uuid).first()

    def _resolve_duplicate(self, existing: Inspection) -> tuple[Inspection, bool]:
        if existing.org_id != self.org_id:
            raise Conflict("client_uuid is already in use")
        logger.info(f"Duplicate inspection submission resolved to {existing.id}")
        return existing, True

    def _capture_weather(self, lat: float | None, lng: float | None) -> dict | None:
        if lat is None or lng is None or not self.weather.configured:
            return None
        try:
            return self.weather.get_current_weather(lat, lng)
        except Exception as e:
            logger.error(f"Weather capture failed at ({lat}, {lng}): {e}")
            return None

    def create_inspection(self, data: InspectionCreate) -> tuple[Inspection, bool]:
        """Create an inspection, or return the one already stored for its client_uuid.

        Args:
            data: Inspection creation data.

        Returns:
            tuple: (inspection, is_duplicate).

        Raises:
            Forbidden: If the caller may not author inspections.
            Conflict: If the client_uuid belongs to another organisation.
            NotFound: If the hive is not in the caller's organisation.
        """
        self._require_author()

        existing = self._find_by_client_uuid(data.client_uuid)
        if existing is not None:
            return self._resolve_duplicate(existing)

        hive = self.db.query(Hive).filter(Hive.id == data.hive_id, Hive.org_id == self.org_id).first()
        if not hive:
            raise NotFound("Hive not found")

        inspection = Inspection(
            org_id=self.org_id,
            hive_id=data.hive_id,
            inspector_user_id=self.user_id,
            started_at=data.started_at,
            ended_at=data.ended_at,
            location_lat=data.location_lat,
            location_lng=data.location_lng,
            location_accuracy_m=data.location_accuracy_m,
            offline_created_at=data.offline_created_at,
            client_uuid=data.client_uuid,
            sections_json=data.sections_json.to_json() if data.sections_json else None,
            notes=data.notes or None,
            weather_json=self._capture_weather(data.location_lat, data.location_lng),
            locked_at=utcnow() if data.ended_at else None,
        )

        try:
            with self.db.begin_nested():
                self.db.add(inspection)
        except IntegrityError:
            # Lost the race to a concurrent submission with the same client_uuid
            existing = self._find_by_client_uuid(data.client_uuid)
            if existing is None:
                raise
            return self._resolve_duplicate(existing)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_inspection",
            "inspection",
            inspection.id,
            {"hive_id": data.hive_id, "client_uuid": data.client_uuid},
        )
        self.db.commit()
        self.db.refresh(inspection)
        logger.info(f"Created inspection {inspection.id} for hive {inspection.hive_id}")
        return inspection, False

    def update_inspection(self, inspection_id: str, data: InspectionUpdate) -> Inspection:
        """Patch an open inspection.

        The lock check and the write are one conditional UPDATE, so a
        concurrent lock cannot be overtaken.

        Args:
            inspection_id: Inspection UUID.
            data: Fields to change.

        Returns:
            Inspection: The updated inspection.

        Raises:
            Forbidden: If the caller may not author inspections.
            NotFound: If the inspection is not in the caller's organisation.
            Locked: If the inspection is locked.
            NoFieldsToUpdate: If the patch carries no fields.
        """
        self._require_author()

        values = data.to_values()
        if not values:
            inspection = self._get(inspection_id)
            if inspection is None:
                raise NotFound("Inspection not found")
            if inspection.locked_at is not None:
                raise Locked()
            raise NoFieldsToUpdate()

        if values.get("ended_at") is not None:
            values["locked_at"] = utcnow()

        updated = apply_patch(
            self.db,
            Inspection,
            values,
            Inspection.id == inspection_id,
            Inspection.org_id == self.org_id,
            Inspection.locked_at.is_(None),
        )
        if updated == 0:
            self.db.rollback()
            if self._get(inspection_id) is None:
                raise NotFound("Inspection not found")
            raise Locked()

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_inspection",
            "inspection",
            inspection_id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        return self._get(inspection_id)

    def get_inspection(self, inspection_id: str) -> Inspection:
        """Get an inspection of the caller's organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        inspection = self._get(inspection_id)
        if inspection is None:
            raise NotFound("Inspection not found")
        return inspection

    def list_inspections(self, hive_id: str | None = None, limit: int = 50) -> InspectionListResponse:
        """List inspections, newest first.

        Args:
            hive_id: Only inspections of this hive.
            limit: Maximum number of inspections.

        Returns:
            InspectionListResponse: Matching inspections.
        """
        query = (
            self.db.query(Inspection)
            .options(joinedload(Inspection.hive), joinedload(Inspection.inspector))
            .filter(Inspection.org_id == self.org_id)
        )
        if hive_id:
            query = query.filter(Inspection.hive_id == hive_id)

        inspections = query.order_by(Inspection.started_at.desc()).limit(limit).all()
        return InspectionListResponse(inspections=[self.to_response(i) for i in inspections])

    def refresh_weather(self, inspection_id: str) -> dict:
        """Fetch and store current weather for an open inspection.

        Args:
            inspection_id: Inspection UUID.

        Returns:
            dict: Stored weather snapshot.

        Raises:
            Forbidden: If the caller may not author inspections.
            NotFound: If the inspection is not in the caller's organisation.
            ValidationError: If the inspection has no location.
            Locked: If the inspection is locked.
            UpstreamUnavailable: If weather could not be fetched.
        """
        self._require_author()

        inspection = self.get_inspection(inspection_id)
        if inspection.location_lat is None or inspection.location_lng is None:
            raise ValidationError("Inspection does not have location data")
        if inspection.locked_at is not None:
            raise Locked()

        weather = self.weather.get_current_weather(inspection.location_lat, inspection.location_lng)
        if weather is None:
            raise UpstreamUnavailable("Weather service unavailable")

        updated = apply_patch(
            self.db,
            Inspection,
            {"weather_json": weather},
            Inspection.id == inspection_id,
            Inspection.org_id == self.org_id,
            Inspection.locked_at.is_(None),
        )
        if updated == 0:
            self.db.rollback()
            raise Locked()
        self.db.commit()
        return weather

    def to_response(self, inspection: Inspection) -> InspectionResponse:
        """Convert an inspection to its response schema."""
        response = InspectionResponse.model_validate(inspection)
        if inspection.hive:
            response.hive_label = inspection.hive.label
            response.hive_public_id = inspection.hive.public_id
        if inspection.inspector:
            response.inspector_name = inspection.inspector.name
        return response


def get_inspection_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> InspectionService:
    """Get inspection service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        InspectionService: Service instance.
    """
    return InspectionService(db, org_id, user_id, role)
