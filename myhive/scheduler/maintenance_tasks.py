"""Recurring maintenance task generator."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from myhive.db.database import Database
from myhive.db.models import MaintenanceSchedule, utcnow
from myhive.maintenance.recurrence import insert_occurrence, open_occurrence_exists

logger = logging.getLogger(__name__)

CREATED = "created"
EXISTING = "existing"
MISSING = "missing"


@dataclass
class GenerationSummary:
    """Counters of one generation run.

    Attributes:
        schedules_due: Active schedules whose next due date had been reached.
        tasks_created: Tasks inserted by this run.
        skipped_existing: Occurrences that already had an open task.
        skipped_missing: Schedules that vanished before they were processed.
        errors: Per-schedule failures as ``{"schedule_id", "error"}``.
    """

    schedules_due: int = 0
    tasks_created: int = 0
    skipped_existing: int = 0
    skipped_missing: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "schedules_due": self.schedules_due,
            "tasks_created": self.tasks_created,
            "skipped_existing": self.skipped_existing,
            "skipped_missing": self.skipped_missing,
            "errors": list(self.errors),
        }


class MaintenanceTaskGenerator:
    """Turns due maintenance schedules into pending tasks.

    Each (schedule, due date) is materialized at most once while its task is
    open. Schedules are processed independently: one failing schedule is
    logged and skipped, the rest of the batch still runs. The generator never
    moves ``next_due_date``; completing a schedule does.

    Attributes:
        database: Store handle the generator opens its session from.
    """

    def __init__(self, database: Database):
        self.database = database

    def run(self, today: date | None = None) -> GenerationSummary:
        """Generate tasks for every schedule due on or before ``today``.

        Args:
            today: Reference date (defaults to the current UTC date).

        Returns:
            GenerationSummary: What the run did. Never raises.
        """
        today = today or utcnow().date()
        summary = GenerationSummary()
        logger.info(f"Starting maintenance task generation for {today}")

        try:
            with self.database.session() as db:
                due = (
                    db.query(MaintenanceSchedule.id, MaintenanceSchedule.next_due_date)
                    .filter(
                        MaintenanceSchedule.is_active.is_(True),
                        MaintenanceSchedule.next_due_date <= today,
                    )
                    .order_by(MaintenanceSchedule.next_due_date)
                    .all()
                )
                summary.schedules_due = len(due)
                logger.info(f"Found {len(due)} schedules due for task generation")

                for schedule_id, due_date in due:
                    try:
                        outcome = self._materialize(db, schedule_id, due_date)
                        db.commit()
                    except Exception as e:
                        db.rollback()
                        logger.error(f"Error processing schedule {schedule_id}: {e}")
                        summary.errors.append({"schedule_id": schedule_id, "error": str(e)})
                        continue

                    if outcome == CREATED:
                        summary.tasks_created += 1
                    elif outcome == EXISTING:
                        summary.skipped_existing += 1
                    else:
                        summary.skipped_missing += 1

        except Exception as e:
            logger.error(f"Error generating maintenance tasks: {e}")
            summary.errors.append({"schedule_id": None, "error": str(e)})

        logger.info(
            f"Maintenance task generation complete: created {summary.tasks_created}, "
            f"existing {summary.skipped_existing}, missing {summary.skipped_missing}, "
            f"errors {len(summary.errors)}"
        )
        return summary

    def _materialize(self, db: Session, schedule_id: str, due_date: date) -> str:
        """Materialize one occurrence.

        Args:
            db: Database session.
            schedule_id: Schedule UUID.
            due_date: The schedule's next due date at selection time.

        Returns:
            str: CREATED, EXISTING or MISSING.
        """
        if open_occurrence_exists(db, schedule_id, due_date):
            logger.debug(f"Task already exists for schedule {schedule_id} on {due_date}")
            return EXISTING

        # Re-read: the schedule may have been removed since selection
        schedule = db.query(MaintenanceSchedule).filter(MaintenanceSchedule.id == schedule_id).first()
        if schedule is None:
            logger.warning(f"Schedule {schedule_id} not found, skipping")
            return MISSING

        task = insert_occurrence(db, schedule, due_date, schedule.template)
        if task is None:
            return EXISTING

        logger.info(f"Created task for schedule {schedule_id} ({schedule.name}) due {due_date}")
        return CREATED


def generate_maintenance_tasks(database: Database, today: date | None = None) -> dict[str, Any]:
    """Run the generator once and return its summary as a dict.

    Args:
        database: Store handle.
        today: Reference date (defaults to the current UTC date).

    Returns:
        dict: Generation summary.
    """
    return MaintenanceTaskGenerator(database).run(today).as_dict()
