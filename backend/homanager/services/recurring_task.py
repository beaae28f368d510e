"""Recurring task service for materialising task instances from templates."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Sequence
from uuid import UUID

import structlog
from dateutil.relativedelta import relativedelta
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.config import get_settings
from homanager.exceptions import ValidationError
from homanager.models.task import RecurrenceUnit, Task, TaskStatus

logger = structlog.get_logger()

# Due dates are date-only; storing them at noon keeps them on the same
# calendar day whatever timezone they are later rendered in.
DUE_DATE_HOUR = 12

# Descriptive fields copied from a template onto each generated instance
TEMPLATE_FIELDS = (
    "house_id",
    "title",
    "description",
    "reminder_offset_days",
    "created_by_id",
    "assignee_id",
    "zone_id",
    "category_id",
    "project_id",
    "equipment_id",
    "animal_id",
    "person_id",
    "notification_bypass_quiet_hours",
    "notification_bypass_schedule",
    "notification_escalation_enabled",
    "notification_escalation_delay_hours",
)


def date_key(value: datetime | date) -> str:
    return value.strftime("%Y-%m-%d")


def normalize_due_date(value: datetime | date) -> datetime:
    """Drop the time of day and pin the value to noon."""
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time(hour=DUE_DATE_HOUR))


def add_interval(value: datetime, unit: RecurrenceUnit, interval: int) -> datetime:
    """Advance ``value`` by ``interval`` units (months and years clamp to month end)."""
    if unit == RecurrenceUnit.DAILY:
        return value + timedelta(days=interval)
    if unit == RecurrenceUnit.WEEKLY:
        return value + timedelta(weeks=interval)
    if unit == RecurrenceUnit.MONTHLY:
        return value + relativedelta(months=interval)
    if unit == RecurrenceUnit.YEARLY:
        return value + relativedelta(years=interval)
    raise ValidationError(f"Unit {unit.value} does not recur", field="recurrence_unit")


def whole_units_between(start: datetime, end: datetime, unit: RecurrenceUnit) -> int:
    """Number of complete ``unit`` periods from ``start`` to ``end``."""
    if unit == RecurrenceUnit.DAILY:
        return (end - start).days
    if unit == RecurrenceUnit.WEEKLY:
        return (end - start).days // 7
    delta = relativedelta(end, start)
    if unit == RecurrenceUnit.MONTHLY:
        return delta.years * 12 + delta.months
    if unit == RecurrenceUnit.YEARLY:
        return delta.years
    raise ValidationError(f"Unit {unit.value} does not recur", field="recurrence_unit")


def catch_up(cursor: datetime, today: datetime, unit: RecurrenceUnit, interval: int) -> datetime:
    """Move an overdue cursor to the first occurrence on or after ``today``.

    Jumps over whole missed intervals in a single step, then walks the
    remaining slack one interval at a time.
    """
    if cursor >= today:
        return cursor

    jumps = whole_units_between(cursor, today, unit) // interval
    if jumps > 0:
        cursor = add_interval(cursor, unit, jumps * interval)
    while cursor < today:
        cursor = add_interval(cursor, unit, interval)
    return cursor


@dataclass(frozen=True)
class TemplateSnapshot:
    """Plain copy of the template values expansion needs.

    A rolled back insert expires every object in the session; expansion
    only reads these copies so later templates stay readable.
    """

    id: UUID
    unit: RecurrenceUnit
    interval: int
    anchor: datetime
    end_date: date | None
    fields: dict[str, Any]


def snapshot_template(template: Task) -> TemplateSnapshot:
    """Validate a template and copy the values expansion reads."""
    if template.recurrence_unit is None or template.due_date is None:
        raise ValidationError("Template has no recurrence", field="recurrence_unit")
    unit = RecurrenceUnit(template.recurrence_unit)
    if unit == RecurrenceUnit.NONE:
        raise ValidationError("Template unit NONE is not expandable", field="recurrence_unit")
    interval = template.recurrence_interval or 1
    if interval < 1:
        raise ValidationError("Recurrence interval must be at least 1", field="recurrence_interval")

    return TemplateSnapshot(
        id=template.id,
        unit=unit,
        interval=interval,
        anchor=template.due_date,
        end_date=template.recurrence_end_date,
        fields={name: getattr(template, name) for name in TEMPLATE_FIELDS},
    )


class RecurringTaskService:
    """Service for expanding recurring task templates into dated instances."""

    def __init__(self, db: AsyncSession, horizon_days: int | None = None):
        self.db = db
        self.horizon_days = (
            horizon_days if horizon_days is not None else get_settings().recurrence_horizon_days
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_house_templates(self, house_id: UUID) -> Sequence[Task]:
        """Get all expandable templates of a house (unit set and not NONE)."""
        result = await self.db.execute(
            select(Task)
            .where(
                and_(
                    Task.house_id == house_id,
                    Task.is_template == True,  # noqa: E712
                    Task.recurrence_unit.is_not(None),
                    Task.recurrence_unit != RecurrenceUnit.NONE.value,
                    Task.due_date.is_not(None),
                )
            )
            .order_by(Task.created_at, Task.id)
        )
        return result.scalars().all()

    async def get_instance_keys(self, template_id: UUID) -> set[str]:
        """Date keys of instances already generated for a template."""
        result = await self.db.execute(
            select(Task.due_date).where(
                Task.parent_id == template_id,
                Task.due_date.is_not(None),
            )
        )
        return {date_key(due_date) for due_date in result.scalars().all()}

    # =========================================================================
    # Expansion
    # =========================================================================

    async def ensure_recurring_tasks(
        self,
        house_id: UUID,
        today: date | None = None,
    ) -> list[Task]:
        """Create the missing instances of every template of a house.

        All templates are copied before the first insert, then expanded one
        after the other; each one only reads its own instances. Returns the
        instances created by this call. Once a duplicate insert has been
        rolled back, earlier returned instances are expired.
        """
        templates = await self.get_house_templates(house_id)
        if not templates:
            return []
        snapshots = [snapshot_template(template) for template in templates]

        created: list[Task] = []
        for snapshot in snapshots:
            created.extend(await self._expand(snapshot, today=today))

        logger.info(
            "recurring_templates_processed",
            house_id=str(house_id),
            templates_processed=len(snapshots),
            tasks_created=len(created),
        )
        return created

    async def expand_template(
        self,
        template: Task,
        today: date | None = None,
    ) -> list[Task]:
        """Create instances for one template from today up to the horizon.

        Dates that already have an instance are skipped, so running this
        twice creates nothing the second time.
        """
        return await self._expand(snapshot_template(template), today=today)

    async def _expand(
        self,
        template: TemplateSnapshot,
        today: date | None = None,
    ) -> list[Task]:
        existing_keys = await self.get_instance_keys(template.id)

        start_of_today = datetime.combine(today or date.today(), time.min)
        horizon = start_of_today + timedelta(days=self.horizon_days)
        cursor = catch_up(
            normalize_due_date(template.anchor), start_of_today, template.unit, template.interval
        )

        created: list[Task] = []
        created_keys: list[str] = []
        while cursor <= horizon:
            if template.end_date is not None and cursor.date() > template.end_date:
                break
            key = date_key(cursor)
            if key not in existing_keys:
                task = await self._create_instance(template.id, template.fields, cursor)
                if task is not None:
                    created.append(task)
                    created_keys.append(key)
                existing_keys.add(key)
            cursor = add_interval(cursor, template.unit, template.interval)

        if created:
            logger.info(
                "recurring_template_expanded",
                template_id=str(template.id),
                tasks_created=len(created),
                first_due_date=created_keys[0],
            )
        return created

    async def _create_instance(
        self,
        template_id: UUID,
        fields: dict,
        due_date: datetime,
    ) -> Task | None:
        """Insert one instance; a duplicate (parent, due date) means another run won."""
        task = Task(
            **fields,
            status=TaskStatus.TODO.value,
            due_date=due_date,
            assigned_at=datetime.now(timezone.utc) if fields["assignee_id"] else None,
            is_template=False,
            parent_id=template_id,
        )
        self.db.add(task)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "recurring_task_already_exists",
                template_id=str(template_id),
                due_date=date_key(due_date),
            )
            return None

        logger.debug(
            "recurring_task_created",
            task_id=str(task.id),
            template_id=str(template_id),
            due_date=date_key(due_date),
        )
        return task
