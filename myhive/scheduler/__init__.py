"""Background jobs."""

from myhive.scheduler.maintenance_tasks import (
    GenerationSummary,
    MaintenanceTaskGenerator,
    generate_maintenance_tasks,
)
from myhive.scheduler.triggers import (
    IntervalTrigger,
    MaintenanceTrigger,
    build_maintenance_trigger,
    start_maintenance_scheduler,
)

__all__ = [
    "GenerationSummary",
    "MaintenanceTaskGenerator",
    "generate_maintenance_tasks",
    "IntervalTrigger",
    "MaintenanceTrigger",
    "build_maintenance_trigger",
    "start_maintenance_scheduler",
]
