"""Task service layer."""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from myhive.activity.service import log_activity
from myhive.db.models import (
    AUTHORING_ROLES,
    Hive,
    Inspection,
    Task,
    TaskStatus,
    User,
    UserRole,
    occurrence_key_for,
    utcnow,
)
from myhive.db.patch import patch_values
from myhive.errors import Conflict, Forbidden, NotFound
from myhive.tasks.schemas import TaskCreate, TaskListResponse, TaskResponse, TaskUpdate

logger = logging.getLogger(__name__)


class TaskService:
    """Service class for task operations.

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

    def _require_author(self) -> None:
        if self.role not in AUTHORING_ROLES:
            raise Forbidden()

    def _get(self, task_id: str) -> Task | None:
        return (
            self.db.query(Task)
            .options(joinedload(Task.hive), joinedload(Task.assigned_user))
            .filter(Task.id == task_id, Task.org_id == self.org_id)
            .first()
        )

    def _check_references(
        self,
        hive_id: str | None = None,
        inspection_id: str | None = None,
        assigned_user_id: str | None = None,
    ) -> None:
        """Verify referenced entities belong to the organisation.

        Raises:
            NotFound: If a referenced entity is outside the organisation.
        """
        if hive_id and not (
            self.db.query(Hive.id).filter(Hive.id == hive_id, Hive.org_id == self.org_id).first()
        ):
            raise NotFound("Hive not found")
        if inspection_id and not (
            self.db.query(Inspection.id)
            .filter(Inspection.id == inspection_id, Inspection.org_id == self.org_id)
            .first()
        ):
            raise NotFound("Inspection not found")
        if assigned_user_id and not (
            self.db.query(User.id)
            .filter(User.id == assigned_user_id, User.org_id == self.org_id)
            .first()
        ):
            raise NotFound("Assigned user not found")

    def list_tasks(
        self,
        status: TaskStatus | None = None,
        assigned_to_me: bool = False,
        due_before: date | None = None,
    ) -> TaskListResponse:
        """List tasks ordered by due date, newest first within a day.

        Args:
            status: Only tasks with this status.
            assigned_to_me: Only tasks assigned to the current user.
            due_before: Only tasks due on or before this date.

        Returns:
            TaskListResponse: Matching tasks.
        """
        query = (
            self.db.query(Task)
            .options(joinedload(Task.hive), joinedload(Task.assigned_user))
            .filter(Task.org_id == self.org_id)
        )
        if status:
            query = query.filter(Task.status == status)
        if assigned_to_me:
            query = query.filter(Task.assigned_user_id == self.user_id)
        if due_before:
            query = query.filter(Task.due_date <= due_before)

        tasks = query.order_by(Task.due_date.asc(), Task.created_at.desc()).all()
        return TaskListResponse(tasks=[self.to_response(t) for t in tasks])

    def get_task(self, task_id: str) -> Task:
        """Get a task of the current organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        task = self._get(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def create_task(self, data: TaskCreate) -> Task:
        """Create a pending task.

        Args:
            data: Task creation data.

        Returns:
            Task: Created task.

        Raises:
            Forbidden: If the caller may not author tasks.
            NotFound: If a referenced entity is outside the organisation.
        """
        self._require_author()
        self._check_references(data.hive_id, data.inspection_id, data.assigned_user_id)

        task = Task(
            org_id=self.org_id,
            hive_id=data.hive_id,
            inspection_id=data.inspection_id,
            type=data.type,
            title=data.title,
            description=data.description or None,
            due_date=data.due_date,
            assigned_user_id=data.assigned_user_id,
            status=TaskStatus.PENDING,
        )
        self.db.add(task)
        self.db.flush()

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_task",
            "task",
            task.id,
            {"title": task.title, "due_date": task.due_date.isoformat()},
        )
        self.db.commit()
        return self.get_task(task.id)

    def update_task(self, task_id: str, data: TaskUpdate) -> Task:
        """Patch a task.

        Completing a task releases its schedule occurrence; reopening it
        claims the occurrence again.

        Args:
            task_id: Task UUID.
            data: Fields to change.

        Returns:
            Task: Updated task.

        Raises:
            Forbidden: If the caller may not author tasks.
            NotFound: If the task is not in the organisation.
            NoFieldsToUpdate: If the patch carries no fields.
            Conflict: If reopening would duplicate an open occurrence.
        """
        self._require_author()
        task = self.get_task(task_id)
        values = patch_values(data)

        if "description" in values:
            values["description"] = values["description"] or None
        if "assigned_user_id" in values:
            values["assigned_user_id"] = values["assigned_user_id"] or None
            self._check_references(assigned_user_id=values["assigned_user_id"])
        if "status" in values and values["status"] is None:
            values.pop("status")
        if "title" in values and values["title"] is None:
            values.pop("title")
        if "due_date" in values and values["due_date"] is None:
            values.pop("due_date")

        was_completed = task.status == TaskStatus.COMPLETED
        new_status = values.get("status", task.status)
        new_due_date = values.get("due_date", task.due_date)

        if new_status == TaskStatus.COMPLETED:
            if not was_completed:
                values["completed_at"] = utcnow()
            values["occurrence_key"] = None
        else:
            if was_completed:
                values["completed_at"] = None
            if task.recurring_schedule_id:
                values["occurrence_key"] = occurrence_key_for(task.recurring_schedule_id, new_due_date)

        try:
            with self.db.begin_nested():
                for field, value in values.items():
                    setattr(task, field, value)
        except IntegrityError:
            raise Conflict("An open task already exists for this schedule occurrence")

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_task",
            "task",
            task_id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        return self.get_task(task_id)

    def to_response(self, task: Task) -> TaskResponse:
        """Convert a task to its response schema."""
        response = TaskResponse.model_validate(task)
        if task.hive:
            response.hive_label = task.hive.label
            response.hive_public_id = task.hive.public_id
        if task.assigned_user:
            response.assigned_user_name = task.assigned_user.name
        return response


def get_task_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> TaskService:
    """Get task service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        TaskService: Service instance.
    """
    return TaskService(db, org_id, user_id, role)
