"""Tests for calendar items, iCalendar export and feed tokens."""

from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from icalendar import Calendar

from homanager.exceptions import NotFoundError
from homanager.features import Features
from homanager.models import ImportantDate, Task, User
from homanager.services.calendar import build_calendar_items, recurring_window
from homanager.services.calendar_feed import CalendarFeedService, build_calendar_ics

NOW = datetime(2024, 6, 15, 8, 0, tzinfo=timezone.utc)


def birthday():
    return SimpleNamespace(
        id="bday",
        title="Grandma's birthday",
        description="Call her",
        date=date(1950, 3, 2),
        type="BIRTHDAY",
        is_recurring_yearly=True,
    )


def task(**overrides) -> Task:
    fields = {
        "id": uuid4(),
        "title": "Clean the gutters",
        "due_date": datetime(2024, 6, 20, 12),
    }
    fields.update(overrides)
    return Task(**fields)


def events(ics: bytes) -> list:
    return [c for c in Calendar.from_ical(ics).walk() if c.name == "VEVENT"]


class TestBuildCalendarItems:
    def test_task_and_reminder_items(self):
        gutters = task(reminder_offset_days=3)
        items = build_calendar_items([gutters], anchor=date(2024, 6, 15))

        assert [(i.kind, i.id) for i in items] == [
            ("task", str(gutters.id)),
            ("reminder", f"{gutters.id}-reminder-3"),
        ]
        assert items[1].due_date == datetime(2024, 6, 17, 12)
        assert items[1].parent_id == str(gutters.id)

    def test_undated_tasks_are_skipped(self):
        assert build_calendar_items([task(due_date=None)], anchor=date(2024, 6, 15)) == []

    def test_important_dates_cover_the_year_window(self):
        items = build_calendar_items([], [birthday()], anchor=date(2024, 6, 15))

        assert [i.due_date for i in items] == [date(year, 3, 2) for year in range(2022, 2029)]
        assert all(i.kind == "important_date" for i in items)
        assert items[0].id == "bday-2022"

    def test_recurring_window(self):
        assert recurring_window(date(2024, 6, 15), 2, 4) == (date(2022, 1, 1), date(2028, 12, 31))


class TestBuildCalendarIcs:
    def test_uids_and_fields(self):
        gutters = task(description="Before autumn")
        ics = build_calendar_ics("Homanager - Maison", [gutters], [birthday()], now=NOW)

        parsed = Calendar.from_ical(ics)
        assert str(parsed["X-WR-CALNAME"]) == "Homanager - Maison"

        found = {str(e["UID"]): e for e in events(ics)}
        task_event = found[f"homanager-task-{gutters.id}@homanager"]
        assert str(task_event["SUMMARY"]) == "Clean the gutters"
        assert str(task_event["DESCRIPTION"]) == "Before autumn"
        assert task_event.decoded("DTSTART") == datetime(2024, 6, 20, 12, tzinfo=timezone.utc)
        assert task_event.decoded("DTEND") == datetime(2024, 6, 20, 13, tzinfo=timezone.utc)

        birthday_event = found["homanager-important-bday-2025@homanager"]
        assert birthday_event.decoded("DTSTART") == date(2025, 3, 2)
        assert birthday_event.decoded("DTEND") == date(2025, 3, 3)

    def test_uids_are_stable_between_renders(self):
        gutters = task()
        first = build_calendar_ics("x", [gutters], [birthday()], now=NOW)
        second = build_calendar_ics("x", [gutters], [birthday()], now=NOW)

        assert [str(e["UID"]) for e in events(first)] == [str(e["UID"]) for e in events(second)]


class TestCalendarFeedService:
    async def test_ensure_token_is_stable(self, db, household, features):
        service = CalendarFeedService(db, features=features)

        token, url = await service.ensure_token(household.member_id)
        again, _ = await service.ensure_token(household.member_id)

        assert len(token) == 48
        assert again == token
        assert url == f"https://home.example.com/api/v1/calendar/feed?token={token}"

    async def test_regenerate_replaces_token(self, db, household, features):
        service = CalendarFeedService(db, features=features)

        old, _ = await service.ensure_token(household.member_id)
        new, _ = await service.regenerate_token(household.member_id)

        assert new != old
        with pytest.raises(NotFoundError):
            await service.render_feed(old)

    async def test_unknown_user(self, db, features):
        with pytest.raises(NotFoundError):
            await CalendarFeedService(db, features=features).ensure_token(uuid4())

    async def test_render_feed_for_member(self, db, household, features, make_task):
        open_task = await make_task(title="Mow the lawn", due_date=datetime(2024, 6, 20, 12))
        await make_task(title="Old chore", due_date=datetime(2024, 6, 1, 12), status="done")
        await make_task(title="Template", due_date=datetime(2024, 6, 1, 12), is_template=True)
        db.add(
            ImportantDate(
                house_id=household.house_id,
                title="Anniversary",
                date=date(2010, 9, 1),
            )
        )
        await db.commit()
        service = CalendarFeedService(db, features=features)
        token, _ = await service.ensure_token(household.member_id)

        ics = await service.render_feed(token, now=NOW)

        summaries = [str(e["SUMMARY"]) for e in events(ics)]
        assert "Mow the lawn" in summaries
        assert "Old chore" not in summaries
        assert "Template" not in summaries
        assert "Anniversary" in summaries
        uids = {str(e["UID"]) for e in events(ics)}
        assert f"homanager-task-{open_task.id}@homanager" in uids

    async def test_important_dates_left_out_when_unavailable(self, db, household, make_task):
        db.add(ImportantDate(house_id=household.house_id, title="Anniversary", date=date(2010, 9, 1)))
        await db.commit()
        service = CalendarFeedService(db, features=Features(important_dates=False))
        token, _ = await service.ensure_token(household.member_id)

        ics = await service.render_feed(token, now=NOW)

        assert events(ics) == []

    async def test_user_without_house_has_no_feed(self, db, features):
        loner = User(email="loner@example.com")
        db.add(loner)
        await db.commit()
        service = CalendarFeedService(db, features=features)
        token, _ = await service.ensure_token(loner.id)

        with pytest.raises(NotFoundError):
            await service.render_feed(token)
