"""Calendar view items built from tasks and important dates."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable
from uuid import UUID

from homanager.models.task import Task
from homanager.services.important_date import RecurringSource, occurrences_in_range


@dataclass(frozen=True)
class CalendarItem:
    """One entry of the house calendar."""

    id: str
    title: str
    due_date: datetime | date
    kind: str  # task, reminder, important_date
    href: str | None = None
    parent_id: str | None = None
    description: str | None = None
    assignee_id: UUID | None = None
    zone_id: UUID | None = None
    category_id: UUID | None = None
    project_id: UUID | None = None
    equipment_id: UUID | None = None
    important_date_id: str | None = None
    important_date_type: str | None = None


def recurring_window(anchor: date, years_before: int, years_after: int) -> tuple[date, date]:
    """Whole calendar years around ``anchor`` used to project important dates."""
    return date(anchor.year - years_before, 1, 1), date(anchor.year + years_after, 12, 31)


def build_calendar_items(
    tasks: Iterable[Task],
    important_dates: Iterable[RecurringSource] = (),
    anchor: date | None = None,
    years_before: int = 2,
    years_after: int = 4,
    important_dates_href: str = "/app/settings",
) -> list[CalendarItem]:
    """
    Flatten tasks, their reminders and important-date occurrences.

    A task with a positive reminder offset also yields a reminder item on the
    reminder day. Important dates are projected over whole years around
    ``anchor``.
    """
    items: list[CalendarItem] = []

    for task in tasks:
        if task.due_date is None:
            continue
        links = {
            "assignee_id": task.assignee_id,
            "zone_id": task.zone_id,
            "category_id": task.category_id,
            "project_id": task.project_id,
            "equipment_id": task.equipment_id,
        }
        href = f"/app/tasks/{task.id}"
        items.append(
            CalendarItem(
                id=str(task.id),
                title=task.title,
                due_date=task.due_date,
                kind="task",
                href=href,
                **links,
            )
        )
        if task.reminder_offset_days and task.reminder_offset_days > 0:
            items.append(
                CalendarItem(
                    id=f"{task.id}-reminder-{task.reminder_offset_days}",
                    title=f"Reminder: {task.title}",
                    due_date=task.due_date - timedelta(days=task.reminder_offset_days),
                    kind="reminder",
                    href=href,
                    parent_id=str(task.id),
                    **links,
                )
            )

    date_from, date_to = recurring_window(anchor or date.today(), years_before, years_after)
    for occurrence in occurrences_in_range(important_dates, date_from, date_to):
        items.append(
            CalendarItem(
                id=occurrence.id,
                title=occurrence.title,
                due_date=occurrence.occurrence_date,
                kind="important_date",
                href=important_dates_href,
                description=occurrence.description,
                important_date_id=occurrence.important_date_id,
                important_date_type=occurrence.type,
            )
        )

    return items
