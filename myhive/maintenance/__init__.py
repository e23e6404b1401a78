"""Maintenance planning module: templates, recurring schedules and history."""

from myhive.maintenance.recurrence import advance_due_date, materialize_occurrence
from myhive.maintenance.router import router
from myhive.maintenance.service import MaintenanceService, get_maintenance_service

__all__ = [
    "router",
    "advance_due_date",
    "materialize_occurrence",
    "MaintenanceService",
    "get_maintenance_service",
]
