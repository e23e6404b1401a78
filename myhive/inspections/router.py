"""Inspection API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from myhive.dependencies import CurrentUser, DbSession
from myhive.inspections.schemas import (
    InspectionCreate,
    InspectionEnvelope,
    InspectionListResponse,
    InspectionUpdate,
    WeatherResponse,
)
from myhive.inspections.service import InspectionService, get_inspection_service

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> InspectionService:
    """Get inspection service dependency."""
    return get_inspection_service(db, current_user.org_id, current_user.id, current_user.role)


@router.get("", response_model=InspectionListResponse)
async def list_inspections(
    service: Annotated[InspectionService, Depends(get_service)],
    hive_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
):
    """List inspections for the current organisation, newest first."""
    return service.list_inspections(hive_id=hive_id, limit=limit)


# Plain def: the weather lookup blocks, so this runs in the threadpool
@router.post("", response_model=InspectionEnvelope, status_code=status.HTTP_201_CREATED)
def create_inspection(
    data: InspectionCreate,
    response: Response,
    service: Annotated[InspectionService, Depends(get_service)],
):
    """Create an inspection.

    Resubmitting a ``client_uuid`` that is already stored returns the stored
    inspection with ``duplicate: true`` and status 200.

    Args:
        data: Inspection data.
        response: Outgoing response (status adjusted for duplicates).
        service: Inspection service.

    Returns:
        InspectionEnvelope: The inspection and the duplicate flag.
    """
    inspection, is_duplicate = service.create_inspection(data)
    if is_duplicate:
        response.status_code = status.HTTP_200_OK
    return InspectionEnvelope(inspection=service.to_response(inspection), duplicate=is_duplicate)


@router.get("/{inspection_id}", response_model=InspectionEnvelope)
async def get_inspection(
    inspection_id: str,
    service: Annotated[InspectionService, Depends(get_service)],
):
    """Get an inspection by ID."""
    inspection = service.get_inspection(inspection_id)
    return InspectionEnvelope(inspection=service.to_response(inspection))


@router.patch("/{inspection_id}", response_model=InspectionEnvelope)
async def update_inspection(
    inspection_id: str,
    data: InspectionUpdate,
    service: Annotated[InspectionService, Depends(get_service)],
):
    """Update an open inspection. Setting ``ended_at`` locks it."""
    inspection = service.update_inspection(inspection_id, data)
    return InspectionEnvelope(inspection=service.to_response(inspection))


# Plain def: the weather lookup blocks, so this runs in the threadpool
@router.post("/{inspection_id}/weather", response_model=WeatherResponse)
def refresh_weather(
    inspection_id: str,
    service: Annotated[InspectionService, Depends(get_service)],
):
    """Fetch current weather for an inspection and store it."""
    return WeatherResponse(weather=service.refresh_weather(inspection_id))
