"""Hive API routes."""

from typing import Annotated, Union

from fastapi import APIRouter, Depends, status

from myhive.dependencies import CurrentUser, DbSession, OptionalUser
from myhive.errors import NotFound
from myhive.hives.schemas import (
    HiveCreate,
    HiveDetailResponse,
    HiveEnvelope,
    HiveListResponse,
    HivePublicResponse,
    HiveUpdate,
)
from myhive.hives.service import HiveService, get_hive_service, public_hive_exists

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> HiveService:
    """Get hive service dependency."""
    return get_hive_service(db, current_user.org_id, current_user.id, current_user.role)


@router.get("/public/{public_id}", response_model=Union[HiveEnvelope, HivePublicResponse])
async def lookup_public_hive(public_id: str, db: DbSession, current_user: OptionalUser):
    """Resolve a scanned hive tag.

    Anonymous callers only learn that the hive exists and must log in;
    authenticated callers get the hive if it belongs to their organisation.
    """
    if current_user is None:
        if not public_hive_exists(db, public_id):
            raise NotFound("Hive not found")
        return HivePublicResponse(requires_auth=True, message="Private hive, please log in")

    service = get_hive_service(db, current_user.org_id, current_user.id, current_user.role)
    return HiveEnvelope(hive=service.to_response(service.get_hive_by_public_id(public_id)))


@router.get("", response_model=HiveListResponse)
async def list_hives(
    service: Annotated[HiveService, Depends(get_service)],
    apiary_id: str | None = None,
):
    """List hives for the current organisation."""
    return service.list_hives(apiary_id=apiary_id)


@router.get("/{hive_id}", response_model=HiveDetailResponse)
async def get_hive(
    hive_id: str,
    service: Annotated[HiveService, Depends(get_service)],
):
    """Get a hive with its recent inspections and open tasks."""
    return service.get_hive_detail(hive_id)


@router.post("", response_model=HiveEnvelope, status_code=status.HTTP_201_CREATED)
async def create_hive(
    data: HiveCreate,
    service: Annotated[HiveService, Depends(get_service)],
):
    """Create a hive (admin or manager)."""
    return HiveEnvelope(hive=service.to_response(service.create_hive(data)))


@router.patch("/{hive_id}", response_model=HiveEnvelope)
async def update_hive(
    hive_id: str,
    data: HiveUpdate,
    service: Annotated[HiveService, Depends(get_service)],
):
    """Update a hive (admin or manager)."""
    return HiveEnvelope(hive=service.to_response(service.update_hive(hive_id, data)))
