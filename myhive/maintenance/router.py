"""Maintenance API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from myhive.config import get_settings
from myhive.dependencies import CurrentUser, DbSession, Store
from myhive.maintenance.schemas import (
    GenerationSummaryResponse,
    HistoryListResponse,
    ScheduleBulkCreate,
    ScheduleBulkResponse,
    ScheduleComplete,
    ScheduleCompleteResponse,
    ScheduleCreate,
    ScheduleEnvelope,
    ScheduleListResponse,
    ScheduleUpdate,
    TemplateCreate,
    TemplateEnvelope,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
    UpcomingResponse,
)
from myhive.maintenance.service import MaintenanceService, get_maintenance_service

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> MaintenanceService:
    """Get maintenance service dependency."""
    return get_maintenance_service(db, current_user.org_id, current_user.id, current_user.role)


# Templates


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(service: Annotated[MaintenanceService, Depends(get_service)]):
    """List maintenance templates."""
    return service.list_templates()


@router.get("/templates/{template_id}", response_model=TemplateEnvelope)
async def get_template(
    template_id: str,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Get a maintenance template."""
    return TemplateEnvelope(template=TemplateResponse.model_validate(service.get_template(template_id)))


@router.post("/templates", response_model=TemplateEnvelope, status_code=status.HTTP_201_CREATED)
async def create_template(
    data: TemplateCreate,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Create a maintenance template (admin or manager)."""
    return TemplateEnvelope(template=TemplateResponse.model_validate(service.create_template(data)))


@router.patch("/templates/{template_id}", response_model=TemplateEnvelope)
async def update_template(
    template_id: str,
    data: TemplateUpdate,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Update a maintenance template (admin or manager)."""
    template = service.update_template(template_id, data)
    return TemplateEnvelope(template=TemplateResponse.model_validate(template))


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: str,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Delete a template that no schedule uses (admin or manager)."""
    service.delete_template(template_id)
    return {"success": True}


# Schedules


@router.get("/schedules", response_model=ScheduleListResponse)
async def list_schedules(
    service: Annotated[MaintenanceService, Depends(get_service)],
    active: bool = True,
    hive_id: str | None = None,
):
    """List schedules, active only unless ``active=false``."""
    return service.list_schedules(active=active, hive_id=hive_id)


@router.post("/schedules/bulk", response_model=ScheduleBulkResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_schedules(
    data: ScheduleBulkCreate,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Create several schedules at once; all or nothing."""
    schedules = service.bulk_create_schedules(data.schedules)
    return ScheduleBulkResponse(
        schedules=[service.schedule_to_response(s) for s in schedules],
        count=len(schedules),
    )


@router.get("/schedules/{schedule_id}", response_model=ScheduleEnvelope)
async def get_schedule(
    schedule_id: str,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Get a schedule."""
    return ScheduleEnvelope(schedule=service.schedule_to_response(service.get_schedule(schedule_id)))


@router.post("/schedules", response_model=ScheduleEnvelope, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    data: ScheduleCreate,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Create a schedule (admin or manager)."""
    return ScheduleEnvelope(schedule=service.schedule_to_response(service.create_schedule(data)))


@router.patch("/schedules/{schedule_id}", response_model=ScheduleEnvelope)
async def update_schedule(
    schedule_id: str,
    data: ScheduleUpdate,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Update a schedule (admin or manager)."""
    schedule = service.update_schedule(schedule_id, data)
    return ScheduleEnvelope(schedule=service.schedule_to_response(schedule))


@router.delete("/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: str,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Deactivate a schedule (admin or manager). History and tasks are kept."""
    service.deactivate_schedule(schedule_id)
    return {"success": True}


@router.post("/schedules/{schedule_id}/complete", response_model=ScheduleCompleteResponse)
async def complete_schedule(
    schedule_id: str,
    data: ScheduleComplete,
    service: Annotated[MaintenanceService, Depends(get_service)],
):
    """Record a completion and advance the schedule to its next due date."""
    return service.complete_schedule(schedule_id, data)


@router.get("/upcoming", response_model=UpcomingResponse)
async def upcoming(
    service: Annotated[MaintenanceService, Depends(get_service)],
    days: int = Query(30, ge=0, le=366),
):
    """List active schedules due within the next ``days`` days (overdue included)."""
    return service.upcoming(days=days)


@router.get("/history", response_model=HistoryListResponse)
async def list_history(
    service: Annotated[MaintenanceService, Depends(get_service)],
    hive_id: str | None = None,
    schedule_id: str | None = None,
):
    """List maintenance history, newest first."""
    return service.list_history(hive_id=hive_id, schedule_id=schedule_id)


@router.post("/generate-tasks", response_model=GenerationSummaryResponse)
async def generate_tasks(
    database: Store,
    x_cron_secret: Annotated[str | None, Header()] = None,
):
    """Run the maintenance task generator (for cron jobs).

    This endpoint is meant to be called by an external cron job when the
    in-process scheduler is disabled.

    Args:
        database: Store handle.
        x_cron_secret: Secret key for authentication.

    Returns:
        GenerationSummaryResponse: Summary of the run.

    Raises:
        HTTPException: If secret key is invalid.
    """
    settings = get_settings()

    # Check for cron secret if configured
    if settings.cron_secret_key and x_cron_secret != settings.cron_secret_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )

    # Import here to avoid circular imports
    from myhive.scheduler.maintenance_tasks import generate_maintenance_tasks

    return generate_maintenance_tasks(database)
