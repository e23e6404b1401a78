"""Task API routes."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, status

from myhive.db.models import TaskStatus
from myhive.dependencies import CurrentUser, DbSession
from myhive.tasks.schemas import TaskCreate, TaskEnvelope, TaskListResponse, TaskUpdate
from myhive.tasks.service import TaskService, get_task_service

router = APIRouter()


def get_service(db: DbSession, current_user: CurrentUser) -> TaskService:
    """Get task service dependency."""
    return get_task_service(db, current_user.org_id, current_user.id, current_user.role)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    service: Annotated[TaskService, Depends(get_service)],
    status: TaskStatus | None = None,
    assigned_to_me: bool = False,
    due_before: date | None = None,
):
    """List tasks for the current organisation."""
    return service.list_tasks(status=status, assigned_to_me=assigned_to_me, due_before=due_before)


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    task_id: str,
    service: Annotated[TaskService, Depends(get_service)],
):
    """Get a task by ID."""
    return TaskEnvelope(task=service.to_response(service.get_task(task_id)))


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    service: Annotated[TaskService, Depends(get_service)],
):
    """Create a new task."""
    return TaskEnvelope(task=service.to_response(service.create_task(data)))


@router.patch("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    service: Annotated[TaskService, Depends(get_service)],
):
    """Update a task. Completing it stamps ``completed_at``."""
    return TaskEnvelope(task=service.to_response(service.update_task(task_id, data)))
