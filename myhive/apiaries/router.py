"""Apiary API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from myhive.apiaries.schemas import (
    ApiaryCreate,
    ApiaryEnvelope,
    ApiaryListResponse,
    ApiaryResponse,
    ApiaryUpdate,
)
from myhive.apiaries.service import ApiaryService, get_apiary_service
from myhive.dependencies import CurrentUser, DbSession

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> ApiaryService:
    """Get apiary service dependency."""
    return get_apiary_service(db, current_user.org_id, current_user.id, current_user.role)


@router.get("", response_model=ApiaryListResponse)
async def list_apiaries(service: Annotated[ApiaryService, Depends(get_service)]):
    """List apiaries for the current organisation."""
    return service.list_apiaries()


@router.get("/{apiary_id}", response_model=ApiaryEnvelope)
async def get_apiary(
    apiary_id: str,
    service: Annotated[ApiaryService, Depends(get_service)],
):
    """Get an apiary by ID."""
    return ApiaryEnvelope(apiary=ApiaryResponse.model_validate(service.get_apiary(apiary_id)))


@router.post("", response_model=ApiaryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_apiary(
    data: ApiaryCreate,
    service: Annotated[ApiaryService, Depends(get_service)],
):
    """Create an apiary (admin or manager)."""
    return ApiaryEnvelope(apiary=ApiaryResponse.model_validate(service.create_apiary(data)))


@router.patch("/{apiary_id}", response_model=ApiaryEnvelope)
async def update_apiary(
    apiary_id: str,
    data: ApiaryUpdate,
    service: Annotated[ApiaryService, Depends(get_service)],
):
    """Update an apiary (admin or manager)."""
    return ApiaryEnvelope(apiary=ApiaryResponse.model_validate(service.update_apiary(apiary_id, data)))
