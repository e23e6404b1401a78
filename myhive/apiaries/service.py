"""Apiary service layer."""

import logging

from sqlalchemy.orm import Session

from myhive.activity.service import log_activity
from myhive.apiaries.schemas import ApiaryCreate, ApiaryListResponse, ApiaryResponse, ApiaryUpdate
from myhive.db.models import MANAGING_ROLES, Apiary, UserRole
from myhive.db.patch import patch_values
from myhive.errors import Forbidden, NotFound

logger = logging.getLogger(__name__)


class ApiaryService:
    """Service class for apiary operations.

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

    def list_apiaries(self) -> ApiaryListResponse:
        """List the organisation's apiaries by name."""
        apiaries = (
            self.db.query(Apiary)
            .filter(Apiary.org_id == self.org_id)
            .order_by(Apiary.name)
            .all()
        )
        return ApiaryListResponse(apiaries=[ApiaryResponse.model_validate(a) for a in apiaries])

    def get_apiary(self, apiary_id: str) -> Apiary:
        """Get an apiary of the current organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        apiary = (
            self.db.query(Apiary)
            .filter(Apiary.id == apiary_id, Apiary.org_id == self.org_id)
            .first()
        )
        if apiary is None:
            raise NotFound("Apiary not found")
        return apiary

    def create_apiary(self, data: ApiaryCreate) -> Apiary:
        """Create an apiary.

        Args:
            data: Apiary creation data.

        Returns:
            Apiary: Created apiary.

        Raises:
            Forbidden: If the caller is not an admin or manager.
        """
        self._require_manager()
        apiary = Apiary(
            org_id=self.org_id,
            name=data.name,
            description=data.description or None,
            lat=data.lat,
            lng=data.lng,
        )
        self.db.add(apiary)
        self.db.flush()

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_apiary",
            "apiary",
            apiary.id,
            {"name": apiary.name},
        )
        self.db.commit()
        self.db.refresh(apiary)
        logger.info(f"Created apiary {apiary.id} in organisation {self.org_id}")
        return apiary

    def update_apiary(self, apiary_id: str, data: ApiaryUpdate) -> Apiary:
        """Patch an apiary.

        Args:
            apiary_id: Apiary UUID.
            data: Fields to change.

        Returns:
            Apiary: Updated apiary.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the apiary is not in the organisation.
            NoFieldsToUpdate: If the patch carries no fields.
        """
        self._require_manager()
        apiary = self.get_apiary(apiary_id)
        values = patch_values(data)
        if "name" in values and values["name"] is None:
            values.pop("name")
        if "description" in values:
            values["description"] = values["description"] or None

        for field, value in values.items():
            setattr(apiary, field, value)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_apiary",
            "apiary",
            apiary_id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        self.db.refresh(apiary)
        return apiary


def get_apiary_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> ApiaryService:
    """Get apiary service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        ApiaryService: Service instance.
    """
    return ApiaryService(db, org_id, user_id, role)
