"""Database module."""

from myhive.db.database import Database, get_database, get_db, init_db
from myhive.db.models import (
    ActivityLog,
    Apiary,
    Base,
    Hive,
    Inspection,
    MaintenanceHistory,
    MaintenanceSchedule,
    MaintenanceTemplate,
    Organisation,
    Task,
    User,
)

__all__ = [
    "Database",
    "get_database",
    "get_db",
    "init_db",
    "Base",
    "Organisation",
    "User",
    "Apiary",
    "Hive",
    "Inspection",
    "MaintenanceTemplate",
    "MaintenanceSchedule",
    "MaintenanceHistory",
    "Task",
    "ActivityLog",
]
