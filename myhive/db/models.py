"""SQLAlchemy database models."""

import enum
from datetime import UTC, date, datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys.

    Returns:
        str: UUID as 36-character string.
    """
    return str(uuid4())


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the storage convention."""
    return datetime.now(UTC).replace(tzinfo=None)


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class UserRole(str, enum.Enum):
    """User role enumeration."""

    ADMIN = "admin"
    MANAGER = "manager"
    INSPECTOR = "inspector"
    VIEWER = "viewer"


# Roles allowed to author inspections and tasks
AUTHORING_ROLES = frozenset({UserRole.ADMIN, UserRole.MANAGER, UserRole.INSPECTOR})
# Roles allowed to manage maintenance templates and schedules
MANAGING_ROLES = frozenset({UserRole.ADMIN, UserRole.MANAGER})


class HiveStatus(str, enum.Enum):
    """Hive status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    RETIRED = "retired"


class TaskStatus(str, enum.Enum):
    """Task status enumeration."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FrequencyType(str, enum.Enum):
    """Maintenance schedule cadence."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class Organisation(Base):
    """Organisation model, the tenant boundary.

    Attributes:
        id: Primary key UUID.
        name: Organisation name.
        created_at: Creation timestamp.
    """

    __tablename__ = "organisations"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    users: Mapped[list["User"]] = relationship(
        "User", back_populates="organisation", cascade="all, delete-orphan"
    )
    hives: Mapped[list["Hive"]] = relationship(
        "Hive", back_populates="organisation", cascade="all, delete-orphan"
    )


class User(Base):
    """User model.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        email: User email (unique per organisation).
        name: Display name.
        role: User role.
        password_hash: Hash managed by the auth service.
        is_active: Whether the user is active.
        created_at: Creation timestamp.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("org_id", "email", name="uq_user_org_email"),
        Index("ix_users_org_id", "org_id"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=_enum_values), default=UserRole.VIEWER
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    organisation: Mapped["Organisation"] = relationship("Organisation", back_populates="users")


class Apiary(Base):
    """Apiary model, a site holding hives."""

    __tablename__ = "apiaries"
    __table_args__ = (Index("ix_apiaries_org_id", "org_id"),)

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    hives: Mapped[list["Hive"]] = relationship("Hive", back_populates="apiary")


class Hive(Base):
    """Hive model.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        apiary_id: Optional apiary the hive stands in.
        public_id: Human-readable identifier printed on the hive (unique per org).
        label: Display label.
        status: Hive status.
    """

    __tablename__ = "hives"
    __table_args__ = (
        UniqueConstraint("org_id", "public_id", name="uq_hive_org_public_id"),
        Index("ix_hives_org_id", "org_id"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    apiary_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("apiaries.id", ondelete="SET NULL"), nullable=True
    )
    public_id: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[HiveStatus] = mapped_column(
        Enum(HiveStatus, values_callable=_enum_values), default=HiveStatus.ACTIVE
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    organisation: Mapped["Organisation"] = relationship("Organisation", back_populates="hives")
    apiary: Mapped[Optional["Apiary"]] = relationship("Apiary", back_populates="hives")


class Inspection(Base):
    """Inspection model, a record of a hive examination.

    ``client_uuid`` is generated on the client and is the idempotency key for
    offline-created inspections. Once ``locked_at`` is set the row is frozen.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        hive_id: Inspected hive.
        inspector_user_id: User who performed the inspection.
        started_at: When the inspection began.
        ended_at: When it ended; setting it locks the inspection.
        location_lat: Latitude where the inspection was recorded.
        location_lng: Longitude where the inspection was recorded.
        location_accuracy_m: GPS accuracy in metres.
        client_uuid: Client-generated idempotency key (globally unique).
        offline_created_at: Client-side creation time.
        sections_json: Structured inspection sections.
        notes: Free-form notes.
        weather_json: Weather snapshot captured at creation.
        locked_at: When the inspection became immutable.
        created_at: Server receipt timestamp.
    """

    __tablename__ = "inspections"
    __table_args__ = (
        UniqueConstraint("client_uuid", name="uq_inspections_client_uuid"),
        Index("ix_inspections_org_id", "org_id"),
        Index("ix_inspections_hive_id", "hive_id"),
        Index("ix_inspections_started_at", "started_at"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    hive_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("hives.id", ondelete="CASCADE"), nullable=False
    )
    inspector_user_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    location_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_accuracy_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    client_uuid: Mapped[str] = mapped_column(String(36), nullable=False)
    offline_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    sections_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    weather_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    hive: Mapped["Hive"] = relationship("Hive")
    inspector: Mapped[Optional["User"]] = relationship("User")


class MaintenanceTemplate(Base):
    """Reusable description of a maintenance job.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        name: Template name, used as the generated task title.
        description: Optional description.
        task_type: Type stamped on generated tasks.
        default_duration_days: Expected effort in days.
        instructions: Used as the generated task description.
        checklist_items: Ordered checklist (list of strings).
    """

    __tablename__ = "maintenance_templates"
    __table_args__ = (Index("ix_maintenance_templates_org_id", "org_id"),)

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    task_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    default_duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    checklist_items: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class MaintenanceSchedule(Base):
    """Recurring maintenance obligation for a hive or a whole organisation.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        template_id: Optional template supplying task title/type/instructions.
        hive_id: Target hive, or None for organisation-wide schedules.
        name: Human label, used as task title when there is no template.
        frequency_type: Cadence unit.
        frequency_value: Cadence multiplier.
        next_due_date: Next occurrence to materialize.
        last_completed_date: Date of the last completion.
        is_active: Soft-delete flag; inactive schedules are never generated.
    """

    __tablename__ = "maintenance_schedules"
    __table_args__ = (
        Index("ix_maintenance_schedules_org_id", "org_id"),
        Index("ix_maintenance_schedules_due", "is_active", "next_due_date"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    template_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("maintenance_templates.id", ondelete="SET NULL"), nullable=True
    )
    hive_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("hives.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    frequency_type: Mapped[FrequencyType] = mapped_column(
        Enum(FrequencyType, values_callable=_enum_values), default=FrequencyType.MONTHLY
    )
    frequency_value: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    next_due_date: Mapped[date] = mapped_column(Date, nullable=False)
    last_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    template: Mapped[Optional["MaintenanceTemplate"]] = relationship("MaintenanceTemplate")
    hive: Mapped[Optional["Hive"]] = relationship("Hive")


class MaintenanceHistory(Base):
    """Completed occurrence of a maintenance schedule."""

    __tablename__ = "maintenance_history"
    __table_args__ = (
        Index("ix_maintenance_history_org_id", "org_id"),
        Index("ix_maintenance_history_schedule_id", "schedule_id"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    schedule_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("maintenance_schedules.id", ondelete="CASCADE"), nullable=True
    )
    hive_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("hives.id", ondelete="SET NULL"), nullable=True
    )
    completed_by_user_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    inspection_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("inspections.id", ondelete="SET NULL"), nullable=True
    )
    completed_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    checklist_completed: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    schedule: Mapped[Optional["MaintenanceSchedule"]] = relationship("MaintenanceSchedule")
    hive: Mapped[Optional["Hive"]] = relationship("Hive")
    completed_by: Mapped[Optional["User"]] = relationship("User")


class Task(Base):
    """Task model, a unit of work.

    ``occurrence_key`` enforces at most one non-completed task per
    (recurring schedule, due date): it is set for schedule-linked tasks and
    cleared once the task is completed.

    Attributes:
        id: Primary key UUID.
        org_id: Foreign key to organisation.
        hive_id: Optional hive the task concerns.
        inspection_id: Optional inspection that resolved or raised the task.
        type: Task type (e.g. "maintenance", "inspection_due").
        title: Task title.
        description: Optional description.
        due_date: Due date.
        assigned_user_id: Optional assignee.
        status: Task status.
        template_id: Template the task was generated from.
        recurring_schedule_id: Schedule the task materializes.
        occurrence_key: "<schedule id>:<due date>" while not completed.
        completed_at: Completion timestamp.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("occurrence_key", name="uq_tasks_occurrence_key"),
        Index("ix_tasks_org_id", "org_id"),
        Index("ix_tasks_schedule_due", "recurring_schedule_id", "due_date"),
        Index("ix_tasks_status", "status"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=False
    )
    hive_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("hives.id", ondelete="SET NULL"), nullable=True
    )
    inspection_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("inspections.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    assigned_user_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, values_callable=_enum_values), default=TaskStatus.PENDING
    )
    template_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("maintenance_templates.id", ondelete="SET NULL"), nullable=True
    )
    recurring_schedule_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("maintenance_schedules.id", ondelete="SET NULL"), nullable=True
    )
    occurrence_key: Mapped[str | None] = mapped_column(String(80), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    hive: Mapped[Optional["Hive"]] = relationship("Hive")
    assigned_user: Mapped[Optional["User"]] = relationship("User")


def occurrence_key_for(schedule_id: str, due_date: date) -> str:
    """Build the dedup key of one schedule occurrence.

    Args:
        schedule_id: Schedule UUID.
        due_date: Occurrence due date.

    Returns:
        str: Key stored in ``Task.occurrence_key``.
    """
    return f"{schedule_id}:{due_date.isoformat()}"


class ActivityLog(Base):
    """Audit trail entry.

    Attributes:
        id: Primary key UUID.
        org_id: Organisation the action happened in.
        actor_user_id: User who acted (None for system jobs).
        action: Action name (e.g. "create_inspection").
        entity_type: Type of the affected entity.
        entity_id: ID of the affected entity.
        metadata_json: Free-form context.
        created_at: When the action happened.
    """

    __tablename__ = "activity_log"
    __table_args__ = (
        Index("ix_activity_log_org_id", "org_id"),
        Index("ix_activity_log_entity", "entity_type", "entity_id"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    org_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("organisations.id", ondelete="CASCADE"), nullable=True
    )
    actor_user_id: Mapped[str | None] = mapped_column(
        CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(CHAR(36), nullable=True)
    metadata_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    actor: Mapped[Optional["User"]] = relationship("User")
