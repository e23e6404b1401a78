"""Task management module."""

from myhive.tasks.router import router
from myhive.tasks.schemas import TaskCreate, TaskEnvelope, TaskListResponse, TaskResponse, TaskUpdate
from myhive.tasks.service import TaskService, get_task_service

__all__ = [
    "router",
    "TaskCreate",
    "TaskEnvelope",
    "TaskListResponse",
    "TaskResponse",
    "TaskUpdate",
    "TaskService",
    "get_task_service",
]
