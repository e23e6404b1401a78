"""Schedule cadence arithmetic and occurrence materialization.

An occurrence is one (schedule, due date) pair. At most one non-completed
task may exist per occurrence; ``Task.occurrence_key`` enforces it in the
store so concurrent generators cannot both insert.
"""

import logging
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from myhive.db.models import (
    FrequencyType,
    MaintenanceSchedule,
    MaintenanceTemplate,
    Task,
    TaskStatus,
    occurrence_key_for,
)

logger = logging.getLogger(__name__)

DEFAULT_TASK_TYPE = "maintenance"


def advance_due_date(frequency_type: FrequencyType, frequency_value: int | None, from_date: date) -> date:
    """Compute the next due date after a completion.

    Month and year steps clamp to the last day of the target month
    (Jan 31 + 1 month = Feb 28/29).

    Args:
        frequency_type: Cadence unit.
        frequency_value: Cadence multiplier (None or 0 means 1).
        from_date: Date the cadence counts from.

    Returns:
        date: Next due date.
    """
    n = frequency_value or 1
    if frequency_type == FrequencyType.DAILY:
        return from_date + timedelta(days=n)
    if frequency_type == FrequencyType.WEEKLY:
        return from_date + timedelta(weeks=n)
    if frequency_type == FrequencyType.MONTHLY:
        return from_date + relativedelta(months=n)
    if frequency_type == FrequencyType.QUARTERLY:
        return from_date + relativedelta(months=3 * n)
    if frequency_type == FrequencyType.YEARLY:
        return from_date + relativedelta(years=n)
    # custom
    return from_date + timedelta(days=30 * n)


def open_occurrence_exists(db: Session, schedule_id: str, due_date: date) -> bool:
    """Whether a non-completed task already materializes this occurrence."""
    return (
        db.query(Task.id)
        .filter(
            Task.recurring_schedule_id == schedule_id,
            Task.due_date == due_date,
            Task.status != TaskStatus.COMPLETED,
        )
        .first()
        is not None
    )


def build_task(
    schedule: MaintenanceSchedule,
    due_date: date,
    template: MaintenanceTemplate | None = None,
) -> Task:
    """Build the pending task for a schedule occurrence.

    With a template the task takes the template's name, instructions and
    type; without one it takes the schedule's name.
    """
    if template is not None:
        title = template.name
        description = template.instructions
        task_type = template.task_type or DEFAULT_TASK_TYPE
    else:
        title = schedule.name
        description = None
        task_type = DEFAULT_TASK_TYPE

    return Task(
        org_id=schedule.org_id,
        hive_id=schedule.hive_id,
        type=task_type,
        title=title,
        description=description,
        due_date=due_date,
        status=TaskStatus.PENDING,
        template_id=template.id if template is not None else None,
        recurring_schedule_id=schedule.id,
        occurrence_key=occurrence_key_for(schedule.id, due_date),
    )


def insert_occurrence(
    db: Session,
    schedule: MaintenanceSchedule,
    due_date: date,
    template: MaintenanceTemplate | None = None,
) -> Task | None:
    """Insert the task for an occurrence inside a savepoint.

    Args:
        db: Database session (not committed here).
        schedule: Schedule being materialized.
        due_date: Occurrence due date.
        template: Template supplying task fields, if any.

    Returns:
        Task | None: The new task, or None if a concurrent writer already
        materialized the occurrence.

    Raises:
        IntegrityError: If the insert failed for another reason.
    """
    task = build_task(schedule, due_date, template)
    try:
        with db.begin_nested():
            db.add(task)
    except IntegrityError:
        if open_occurrence_exists(db, schedule.id, due_date):
            logger.info(f"Occurrence {task.occurrence_key} was materialized concurrently")
            return None
        raise
    return task


def materialize_occurrence(
    db: Session,
    schedule: MaintenanceSchedule,
    due_date: date,
    template: MaintenanceTemplate | None = None,
) -> Task | None:
    """Create the task for an occurrence unless an open one exists.

    Returns:
        Task | None: The new task, or None if it already existed.
    """
    if open_occurrence_exists(db, schedule.id, due_date):
        return None
    return insert_occurrence(db, schedule, due_date, template)
