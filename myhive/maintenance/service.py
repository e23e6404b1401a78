"""Maintenance service: templates, schedules, completion and history."""

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session, joinedload

from myhive.activity.service import log_activity
from myhive.db.models import (
    AUTHORING_ROLES,
    MANAGING_ROLES,
    Hive,
    Inspection,
    MaintenanceHistory,
    MaintenanceSchedule,
    MaintenanceTemplate,
    UserRole,
    utcnow,
)
from myhive.db.patch import patch_values
from myhive.errors import Conflict, Forbidden, NotFound
from myhive.maintenance.recurrence import advance_due_date, materialize_occurrence
from myhive.maintenance.schemas import (
    HistoryListResponse,
    HistoryResponse,
    ScheduleComplete,
    ScheduleCompleteResponse,
    ScheduleCreate,
    ScheduleListResponse,
    ScheduleResponse,
    ScheduleUpdate,
    TemplateCreate,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
    UpcomingResponse,
)

logger = logging.getLogger(__name__)

# Fields that may not be cleared with an explicit null
_REQUIRED_SCHEDULE_FIELDS = ("name", "frequency_type", "frequency_value", "next_due_date", "is_active")
_REQUIRED_TEMPLATE_FIELDS = ("name", "task_type")


class MaintenanceService:
    """Service for an organisation's maintenance planning.

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

    def _require_manager(self) -> None:
        if self.role not in MANAGING_ROLES:
            raise Forbidden()

    def _require_author(self) -> None:
        if self.role not in AUTHORING_ROLES:
            raise Forbidden()

    # Templates

    def _get_template(self, template_id: str) -> MaintenanceTemplate | None:
        return (
            self.db.query(MaintenanceTemplate)
            .filter(
                MaintenanceTemplate.id == template_id,
                MaintenanceTemplate.org_id == self.org_id,
            )
            .first()
        )

    def list_templates(self) -> TemplateListResponse:
        """List templates ordered by name."""
        templates = (
            self.db.query(MaintenanceTemplate)
            .filter(MaintenanceTemplate.org_id == self.org_id)
            .order_by(MaintenanceTemplate.name)
            .all()
        )
        return TemplateListResponse(templates=[TemplateResponse.model_validate(t) for t in templates])

    def get_template(self, template_id: str) -> MaintenanceTemplate:
        """Get a template of the organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        template = self._get_template(template_id)
        if template is None:
            raise NotFound("Template not found")
        return template

    def create_template(self, data: TemplateCreate) -> MaintenanceTemplate:
        """Create a maintenance template.

        Raises:
            Forbidden: If the caller is not an admin or manager.
        """
        self._require_manager()
        template = MaintenanceTemplate(org_id=self.org_id, **data.model_dump())
        self.db.add(template)
        self.db.flush()
        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_maintenance_template",
            "maintenance_template",
            template.id,
            {"name": template.name},
        )
        self.db.commit()
        self.db.refresh(template)
        return template

    def update_template(self, template_id: str, data: TemplateUpdate) -> MaintenanceTemplate:
        """Patch a maintenance template.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the template is not in the organisation.
            NoFieldsToUpdate: If the patch carries no fields.
        """
        self._require_manager()
        template = self.get_template(template_id)
        values = patch_values(data)

        for field, value in values.items():
            if value is None and field in _REQUIRED_TEMPLATE_FIELDS:
                continue
            setattr(template, field, value)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_maintenance_template",
            "maintenance_template",
            template.id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: str) -> None:
        """Delete a template no schedule references.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the template is not in the organisation.
            Conflict: If a schedule still references the template.
        """
        self._require_manager()
        template = self.get_template(template_id)

        in_use = (
            self.db.query(MaintenanceSchedule.id)
            .filter(MaintenanceSchedule.template_id == template.id)
            .first()
        )
        if in_use:
            raise Conflict(
                "Cannot delete template that is used by existing schedules. "
                "Please remove or update the schedules first."
            )

        self.db.delete(template)
        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "delete_maintenance_template",
            "maintenance_template",
            template_id,
        )
        self.db.commit()

    # Schedules

    def _schedule_query(self):
        return (
            self.db.query(MaintenanceSchedule)
            .options(joinedload(MaintenanceSchedule.template), joinedload(MaintenanceSchedule.hive))
            .filter(MaintenanceSchedule.org_id == self.org_id)
        )

    def _check_schedule_references(self, template_id: str | None, hive_id: str | None) -> None:
        """Verify a schedule's template and hive belong to the organisation.

        Raises:
            NotFound: If either reference is outside the organisation.
        """
        if template_id and self._get_template(template_id) is None:
            raise NotFound("Template not found")
        if hive_id and not (
            self.db.query(Hive.id).filter(Hive.id == hive_id, Hive.org_id == self.org_id).first()
        ):
            raise NotFound("Hive not found")

    def list_schedules(self, active: bool = True, hive_id: str | None = None) -> ScheduleListResponse:
        """List schedules ordered by next due date.

        Args:
            active: Only active schedules (pass False to include inactive ones).
            hive_id: Only schedules of this hive.

        Returns:
            ScheduleListResponse: Matching schedules.
        """
        query = self._schedule_query()
        if active:
            query = query.filter(MaintenanceSchedule.is_active.is_(True))
        if hive_id:
            query = query.filter(MaintenanceSchedule.hive_id == hive_id)
        schedules = query.order_by(MaintenanceSchedule.next_due_date).all()
        return ScheduleListResponse(schedules=[self.schedule_to_response(s) for s in schedules])

    def get_schedule(self, schedule_id: str) -> MaintenanceSchedule:
        """Get a schedule of the organisation.

        Raises:
            NotFound: If absent or owned by another organisation.
        """
        schedule = self._schedule_query().filter(MaintenanceSchedule.id == schedule_id).first()
        if schedule is None:
            raise NotFound("Schedule not found")
        return schedule

    def _add_schedule(self, data: ScheduleCreate) -> MaintenanceSchedule:
        self._check_schedule_references(data.template_id, data.hive_id)
        schedule = MaintenanceSchedule(org_id=self.org_id, **data.model_dump())
        self.db.add(schedule)
        return schedule

    def create_schedule(self, data: ScheduleCreate) -> MaintenanceSchedule:
        """Create a maintenance schedule.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the template or hive is outside the organisation.
        """
        self._require_manager()
        schedule = self._add_schedule(data)
        self.db.flush()
        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "create_maintenance_schedule",
            "maintenance_schedule",
            schedule.id,
            {"name": schedule.name, "next_due_date": schedule.next_due_date.isoformat()},
        )
        self.db.commit()
        return self.get_schedule(schedule.id)

    def bulk_create_schedules(self, items: list[ScheduleCreate]) -> list[MaintenanceSchedule]:
        """Create several schedules in one transaction.

        Either every schedule is created or none is.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If any template or hive is outside the organisation.
        """
        self._require_manager()
        try:
            schedules = [self._add_schedule(item) for item in items]
            self.db.flush()
        except Exception:
            self.db.rollback()
            raise

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "bulk_create_maintenance_schedules",
            "maintenance_schedule",
            None,
            {"count": len(schedules)},
        )
        self.db.commit()
        ids = [s.id for s in schedules]
        return [self.get_schedule(schedule_id) for schedule_id in ids]

    def update_schedule(self, schedule_id: str, data: ScheduleUpdate) -> MaintenanceSchedule:
        """Patch a maintenance schedule.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the schedule, template or hive is outside the organisation.
            NoFieldsToUpdate: If the patch carries no fields.
        """
        self._require_manager()
        schedule = self.get_schedule(schedule_id)
        values = patch_values(data)
        self._check_schedule_references(values.get("template_id"), values.get("hive_id"))

        for field, value in values.items():
            if value is None and field in _REQUIRED_SCHEDULE_FIELDS:
                continue
            setattr(schedule, field, value)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "update_maintenance_schedule",
            "maintenance_schedule",
            schedule.id,
            data.model_dump(mode="json", exclude_unset=True),
        )
        self.db.commit()
        return self.get_schedule(schedule_id)

    def deactivate_schedule(self, schedule_id: str) -> None:
        """Deactivate a schedule; it is never generated again.

        Raises:
            Forbidden: If the caller is not an admin or manager.
            NotFound: If the schedule is not in the organisation.
        """
        self._require_manager()
        schedule = self.get_schedule(schedule_id)
        schedule.is_active = False
        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "delete_maintenance_schedule",
            "maintenance_schedule",
            schedule.id,
        )
        self.db.commit()

    def upcoming(self, days: int = 30, today: date | None = None) -> UpcomingResponse:
        """List active schedules due within ``days`` days.

        Overdue schedules are included.
        """
        today = today or utcnow().date()
        schedules = (
            self._schedule_query()
            .filter(
                MaintenanceSchedule.is_active.is_(True),
                MaintenanceSchedule.next_due_date <= today + timedelta(days=days),
            )
            .order_by(MaintenanceSchedule.next_due_date)
            .all()
        )
        return UpcomingResponse(upcoming=[self.schedule_to_response(s) for s in schedules])

    def complete_schedule(self, schedule_id: str, data: ScheduleComplete) -> ScheduleCompleteResponse:
        """Record a completed occurrence and move the schedule to its next date.

        The history row, the cadence advancement and the task for the new due
        date (when the schedule has a template) are committed together.

        Args:
            schedule_id: Schedule UUID.
            data: Completion details.

        Returns:
            ScheduleCompleteResponse: History entry, new due date and the
            task created for it, if any.

        Raises:
            Forbidden: If the caller may not author records.
            NotFound: If the schedule, hive or inspection is outside the organisation.
        """
        self._require_author()
        schedule = self.get_schedule(schedule_id)
        hive_id = data.hive_id or schedule.hive_id
        self._check_schedule_references(None, data.hive_id)
        if data.inspection_id and not (
            self.db.query(Inspection.id)
            .filter(Inspection.id == data.inspection_id, Inspection.org_id == self.org_id)
            .first()
        ):
            raise NotFound("Inspection not found")

        history = MaintenanceHistory(
            org_id=self.org_id,
            schedule_id=schedule.id,
            hive_id=hive_id,
            completed_by_user_id=self.user_id,
            inspection_id=data.inspection_id,
            completed_date=data.completed_date,
            notes=data.notes or None,
            checklist_completed=data.checklist_completed,
        )
        self.db.add(history)

        next_due_date = advance_due_date(
            schedule.frequency_type, schedule.frequency_value, data.completed_date
        )
        schedule.last_completed_date = data.completed_date
        schedule.next_due_date = next_due_date
        self.db.flush()

        task = None
        if schedule.template is not None:
            task = materialize_occurrence(self.db, schedule, next_due_date, schedule.template)

        log_activity(
            self.db,
            self.org_id,
            self.user_id,
            "complete_maintenance",
            "maintenance_schedule",
            schedule.id,
            {"next_due_date": next_due_date.isoformat()},
        )
        self.db.commit()
        logger.info(f"Schedule {schedule.id} completed, next due {next_due_date}")

        return ScheduleCompleteResponse(
            history=self._history_to_response(self._get_history(history.id)),
            next_due_date=next_due_date,
            task_id=task.id if task is not None else None,
        )

    # History

    def _history_query(self):
        return (
            self.db.query(MaintenanceHistory)
            .options(
                joinedload(MaintenanceHistory.schedule),
                joinedload(MaintenanceHistory.hive),
                joinedload(MaintenanceHistory.completed_by),
            )
            .filter(MaintenanceHistory.org_id == self.org_id)
        )

    def _get_history(self, history_id: str) -> MaintenanceHistory:
        return self._history_query().filter(MaintenanceHistory.id == history_id).one()

    def list_history(
        self, hive_id: str | None = None, schedule_id: str | None = None
    ) -> HistoryListResponse:
        """List history entries, most recent completion first."""
        query = self._history_query()
        if hive_id:
            query = query.filter(MaintenanceHistory.hive_id == hive_id)
        if schedule_id:
            query = query.filter(MaintenanceHistory.schedule_id == schedule_id)
        entries = query.order_by(
            MaintenanceHistory.completed_date.desc(), MaintenanceHistory.created_at.desc()
        ).all()
        return HistoryListResponse(history=[self._history_to_response(e) for e in entries])

    # Conversions

    def schedule_to_response(self, schedule: MaintenanceSchedule) -> ScheduleResponse:
        """Convert a schedule to its response schema."""
        response = ScheduleResponse.model_validate(schedule)
        if schedule.template:
            response.template_name = schedule.template.name
            response.task_type = schedule.template.task_type
        if schedule.hive:
            response.hive_label = schedule.hive.label
        return response

    def _history_to_response(self, entry: MaintenanceHistory) -> HistoryResponse:
        response = HistoryResponse.model_validate(entry)
        if entry.schedule:
            response.schedule_name = entry.schedule.name
        if entry.hive:
            response.hive_label = entry.hive.label
        if entry.completed_by:
            response.completed_by_name = entry.completed_by.name
        return response


def get_maintenance_service(
    db: Session,
    org_id: str,
    user_id: str | None = None,
    role: UserRole | None = None,
) -> MaintenanceService:
    """Get maintenance service instance.

    Args:
        db: Database session.
        org_id: Organisation ID.
        user_id: User ID.
        role: User role.

    Returns:
        MaintenanceService: Service instance.
    """
    return MaintenanceService(db, org_id, user_id, role)
