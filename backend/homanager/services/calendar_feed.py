"""Calendar feed: subscription tokens and iCalendar export."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence
from urllib.parse import urlencode
from uuid import UUID

import structlog
from icalendar import Calendar, Event
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.config import get_settings
from homanager.exceptions import HomanagerError, NotFoundError
from homanager.features import Features, get_features
from homanager.models.house import HouseMember, User
from homanager.models.task import Task, TaskStatus
from homanager.services.calendar import recurring_window
from homanager.services.email import absolute_url
from homanager.services.important_date import (
    ImportantDateService,
    RecurringSource,
    occurrences_in_range,
)
from homanager.utils.time_window import as_utc

logger = structlog.get_logger()

CALENDAR_FEED_TOKEN_BYTES = 24
TOKEN_ATTEMPTS = 4
TASK_EVENT_DURATION = timedelta(hours=1)
PRODID = "-//Homanager//Home Calendar//EN"


def feed_url(token: str) -> str:
    return absolute_url(f"/api/v1/calendar/feed?{urlencode({'token': token})}")


def build_calendar_ics(
    calendar_name: str,
    tasks: Iterable[Task],
    important_dates: Iterable[RecurringSource],
    now: datetime | None = None,
    years_before: int = 2,
    years_after: int = 4,
) -> bytes:
    """
    Render tasks and important-date occurrences as an iCalendar document.

    Tasks become one-hour events at their due time; important dates become
    all-day events. UIDs derive from the source ids (plus the year for
    recurring dates) so that calendar clients update events in place.
    """
    now = now or datetime.now(timezone.utc)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", calendar_name)
    cal.add("x-wr-timezone", "UTC")

    for task in tasks:
        if task.due_date is None:
            continue
        start = as_utc(task.due_date)
        event = Event()
        event.add("uid", f"homanager-task-{task.id}@homanager")
        event.add("dtstamp", as_utc(task.updated_at) if task.updated_at else now)
        event.add("dtstart", start)
        event.add("dtend", start + TASK_EVENT_DURATION)
        event.add("summary", task.title)
        if task.description:
            event.add("description", task.description)
        event.add("url", absolute_url(f"/app/tasks/{task.id}"))
        cal.add_component(event)

    date_from, date_to = recurring_window(now.date(), years_before, years_after)
    settings_url = absolute_url("/app/settings")
    for occurrence in occurrences_in_range(important_dates, date_from, date_to):
        event = Event()
        event.add("uid", f"homanager-important-{occurrence.id}@homanager")
        event.add("dtstamp", now)
        event.add("dtstart", occurrence.occurrence_date)
        event.add("dtend", occurrence.occurrence_date + timedelta(days=1))
        event.add("summary", occurrence.title)
        if occurrence.description:
            event.add("description", occurrence.description)
        event.add("url", settings_url)
        cal.add_component(event)

    return cal.to_ical()


class CalendarFeedService:
    """Manage calendar subscription tokens and render a user's feed."""

    def __init__(self, db: AsyncSession, features: Features | None = None):
        self.db = db
        self.features = features or get_features()

    async def ensure_token(self, user_id: UUID) -> tuple[str, str]:
        """Return the user's feed token and URL, creating the token if needed."""
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))

        if user.calendar_feed_token:
            return user.calendar_feed_token, feed_url(user.calendar_feed_token)

        return await self._assign_token(user)

    async def regenerate_token(self, user_id: UUID) -> tuple[str, str]:
        """Replace the user's token, invalidating the old subscription URL."""
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return await self._assign_token(user)

    async def _assign_token(self, user: User) -> tuple[str, str]:
        token = await self._create_unique_token()
        user.calendar_feed_token = token
        await self.db.commit()
        logger.info("calendar_feed_token_assigned", user_id=str(user.id))
        return token, feed_url(token)

    async def _create_unique_token(self) -> str:
        for _ in range(TOKEN_ATTEMPTS):
            token = secrets.token_hex(CALENDAR_FEED_TOKEN_BYTES)
            result = await self.db.execute(
                select(User.id).where(User.calendar_feed_token == token)
            )
            if result.first() is None:
                return token
        raise HomanagerError("Could not generate a unique calendar link", code="TOKEN_EXHAUSTED")

    async def get_open_tasks(self, house_id: UUID) -> Sequence[Task]:
        """Dated, unfinished instances of a house ordered for the feed."""
        result = await self.db.execute(
            select(Task)
            .where(
                and_(
                    Task.house_id == house_id,
                    Task.is_template == False,  # noqa: E712
                    Task.status != TaskStatus.DONE.value,
                    Task.due_date.is_not(None),
                )
            )
            .order_by(Task.due_date, Task.title)
        )
        return result.scalars().all()

    async def render_feed(self, token: str, now: datetime | None = None) -> bytes:
        """Render the feed of the first house the token's owner belongs to."""
        result = await self.db.execute(
            select(HouseMember)
            .join(User, User.id == HouseMember.user_id)
            .where(User.calendar_feed_token == token)
            .order_by(HouseMember.created_at)
            .limit(1)
        )
        membership = result.scalar_one_or_none()
        if membership is None:
            raise NotFoundError("Calendar feed", "token")

        house = membership.house
        settings = get_settings()
        tasks = await self.get_open_tasks(house.id)
        important_dates = await ImportantDateService(
            self.db, features=self.features
        ).get_house_dates(house.id)

        logger.info(
            "calendar_feed_rendered",
            house_id=str(house.id),
            tasks=len(tasks),
            important_dates=len(important_dates),
        )
        return build_calendar_ics(
            calendar_name=f"Homanager - {house.name}",
            tasks=tasks,
            important_dates=important_dates,
            now=now,
            years_before=settings.calendar_years_before,
            years_after=settings.calendar_years_after,
        )
