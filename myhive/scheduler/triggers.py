"""Triggers that decide when the maintenance task generator runs."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from myhive.config import Settings
from myhive.db.database import Database
from myhive.scheduler.maintenance_tasks import MaintenanceTaskGenerator

logger = logging.getLogger(__name__)

JOB_ID = "maintenance_task_generation"


class MaintenanceTrigger(ABC):
    """A clock that calls a job; knows nothing about what the job does."""

    @abstractmethod
    def start(self, job: Callable[[], object]) -> None:
        """Begin calling ``job`` according to the trigger's policy."""

    @abstractmethod
    def stop(self) -> None:
        """Stop calling the job."""


class IntervalTrigger(MaintenanceTrigger):
    """APScheduler-backed trigger running in a background thread.

    Runs on a cron expression when one is given, otherwise every
    ``interval_minutes``. Runs coalesce and never overlap.

    Attributes:
        scheduler: The underlying ``BackgroundScheduler``.
    """

    def __init__(
        self,
        cron: str | None = None,
        interval_minutes: int = 30,
        run_on_start: bool = False,
    ):
        self.cron = cron
        self.interval_minutes = interval_minutes
        self.run_on_start = run_on_start
        self.scheduler = BackgroundScheduler(
            timezone="UTC",
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 120},
        )

    @property
    def description(self) -> str:
        if self.cron:
            return f"cron '{self.cron}'"
        return f"every {self.interval_minutes} minutes"

    def start(self, job: Callable[[], object]) -> None:
        if self.scheduler.running:
            return

        kwargs = {"id": JOB_ID, "replace_existing": True}
        if self.run_on_start:
            kwargs["next_run_time"] = datetime.now(UTC)

        if self.cron:
            self.scheduler.add_job(job, CronTrigger.from_crontab(self.cron, timezone="UTC"), **kwargs)
        else:
            self.scheduler.add_job(job, "interval", minutes=self.interval_minutes, **kwargs)

        self.scheduler.start()
        logger.info(f"[Maintenance Scheduler] Started with {self.description}")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("[Maintenance Scheduler] Stopped")


def build_maintenance_trigger(settings: Settings) -> IntervalTrigger:
    """Build the trigger for the configured environment.

    Production runs on ``maintenance_cron`` (02:00 daily by default); other
    environments run every ``maintenance_dev_interval_minutes``.
    """
    return IntervalTrigger(
        cron=settings.maintenance_cron if settings.is_production else None,
        interval_minutes=settings.maintenance_dev_interval_minutes,
        run_on_start=settings.run_generator_on_startup,
    )


def start_maintenance_scheduler(database: Database, settings: Settings) -> MaintenanceTrigger | None:
    """Start the in-process generator trigger if enabled.

    Args:
        database: Store handle passed to the generator.
        settings: Application settings.

    Returns:
        MaintenanceTrigger | None: The running trigger, or None when disabled.
    """
    if not settings.maintenance_scheduler_enabled:
        logger.info("[Maintenance Scheduler] Disabled by configuration")
        return None

    generator = MaintenanceTaskGenerator(database)
    trigger = build_maintenance_trigger(settings)
    trigger.start(generator.run)
    return trigger
