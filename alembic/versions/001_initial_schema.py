"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Complete schema for the myHive API including:
- Organisations and users with roles
- Apiaries and hives
- Inspections with client_uuid idempotency key and lock timestamp
- Maintenance templates, schedules and history
- Tasks with the schedule occurrence key
- Activity log
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Organisations table (tenants)
    op.create_table(
        "organisations",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    # Users table
    op.create_table(
        "users",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "manager", "inspector", "viewer", name="userrole"),
            nullable=True,
        ),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, default=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "email", name="uq_user_org_email"),
    )
    op.create_index("ix_users_org_id", "users", ["org_id"])

    # Apiaries table
    op.create_table(
        "apiaries",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_apiaries_org_id", "apiaries", ["org_id"])

    # Hives table
    op.create_table(
        "hives",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("apiary_id", mysql.CHAR(36), nullable=True),
        sa.Column("public_id", sa.String(50), nullable=False),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", "retired", name="hivestatus"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["apiary_id"], ["apiaries.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "public_id", name="uq_hive_org_public_id"),
    )
    op.create_index("ix_hives_org_id", "hives", ["org_id"])

    # Inspections table
    op.create_table(
        "inspections",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("hive_id", mysql.CHAR(36), nullable=False),
        sa.Column("inspector_user_id", mysql.CHAR(36), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.Column("location_lat", sa.Float(), nullable=True),
        sa.Column("location_lng", sa.Float(), nullable=True),
        sa.Column("location_accuracy_m", sa.Float(), nullable=True),
        sa.Column("client_uuid", sa.String(36), nullable=False),
        sa.Column("offline_created_at", sa.DateTime(), nullable=True),
        sa.Column("sections_json", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("weather_json", sa.JSON(), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hive_id"], ["hives.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inspector_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_uuid", name="uq_inspections_client_uuid"),
    )
    op.create_index("ix_inspections_org_id", "inspections", ["org_id"])
    op.create_index("ix_inspections_hive_id", "inspections", ["hive_id"])
    op.create_index("ix_inspections_started_at", "inspections", ["started_at"])

    # Maintenance templates table
    op.create_table(
        "maintenance_templates",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("task_type", sa.String(100), nullable=True),
        sa.Column("default_duration_days", sa.Integer(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("checklist_items", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_templates_org_id", "maintenance_templates", ["org_id"])

    # Maintenance schedules table
    op.create_table(
        "maintenance_schedules",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("template_id", mysql.CHAR(36), nullable=True),
        sa.Column("hive_id", mysql.CHAR(36), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "frequency_type",
            sa.Enum(
                "daily", "weekly", "monthly", "quarterly", "yearly", "custom",
                name="frequencytype",
            ),
            nullable=True,
        ),
        sa.Column("frequency_value", sa.Integer(), nullable=True, server_default="1"),
        sa.Column("next_due_date", sa.Date(), nullable=False),
        sa.Column("last_completed_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, default=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["template_id"], ["maintenance_templates.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["hive_id"], ["hives.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_schedules_org_id", "maintenance_schedules", ["org_id"])
    op.create_index(
        "ix_maintenance_schedules_due", "maintenance_schedules", ["is_active", "next_due_date"]
    )

    # Maintenance history table
    op.create_table(
        "maintenance_history",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("schedule_id", mysql.CHAR(36), nullable=True),
        sa.Column("hive_id", mysql.CHAR(36), nullable=True),
        sa.Column("completed_by_user_id", mysql.CHAR(36), nullable=True),
        sa.Column("inspection_id", mysql.CHAR(36), nullable=True),
        sa.Column("completed_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("checklist_completed", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["schedule_id"], ["maintenance_schedules.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["hive_id"], ["hives.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["completed_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["inspection_id"], ["inspections.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_history_org_id", "maintenance_history", ["org_id"])
    op.create_index("ix_maintenance_history_schedule_id", "maintenance_history", ["schedule_id"])

    # Tasks table
    op.create_table(
        "tasks",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=False),
        sa.Column("hive_id", mysql.CHAR(36), nullable=True),
        sa.Column("inspection_id", mysql.CHAR(36), nullable=True),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("assigned_user_id", mysql.CHAR(36), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "in_progress", "completed", "cancelled", name="taskstatus"),
            nullable=True,
        ),
        sa.Column("template_id", mysql.CHAR(36), nullable=True),
        sa.Column("recurring_schedule_id", mysql.CHAR(36), nullable=True),
        sa.Column("occurrence_key", sa.String(80), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hive_id"], ["hives.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["inspection_id"], ["inspections.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["template_id"], ["maintenance_templates.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["recurring_schedule_id"], ["maintenance_schedules.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("occurrence_key", name="uq_tasks_occurrence_key"),
    )
    op.create_index("ix_tasks_org_id", "tasks", ["org_id"])
    op.create_index("ix_tasks_schedule_due", "tasks", ["recurring_schedule_id", "due_date"])
    op.create_index("ix_tasks_status", "tasks", ["status"])

    # Activity log table
    op.create_table(
        "activity_log",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("org_id", mysql.CHAR(36), nullable=True),
        sa.Column("actor_user_id", mysql.CHAR(36), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", mysql.CHAR(36), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organisations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activity_log_org_id", "activity_log", ["org_id"])
    op.create_index("ix_activity_log_entity", "activity_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("activity_log")
    op.drop_table("tasks")
    op.drop_table("maintenance_history")
    op.drop_table("maintenance_schedules")
    op.drop_table("maintenance_templates")
    op.drop_table("inspections")
    op.drop_table("hives")
    op.drop_table("apiaries")
    op.drop_table("users")
    op.drop_table("organisations")
