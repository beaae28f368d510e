"""Tests for important-date projection and lookups."""

from datetime import date
from types import SimpleNamespace
from uuid import uuid4

import pytest

from homanager.exceptions import ValidationError
from homanager.features import Features
from homanager.models import ImportantDate
from homanager.services.important_date import (
    ImportantDateService,
    next_occurrence,
    occurrences_in_range,
    parse_iso_date,
    resolve_for_year,
)


def source(title="Birthday", on=date(1990, 3, 10), yearly=True, description=None):
    return SimpleNamespace(
        id="src",
        title=title,
        description=description,
        date=on,
        type="BIRTHDAY",
        is_recurring_yearly=yearly,
    )


class TestNextOccurrence:
    def test_upcoming_this_year(self):
        assert next_occurrence(date(1990, 8, 1), True, date(2024, 6, 15)) == date(2024, 8, 1)

    def test_passed_this_year_moves_to_next(self):
        assert next_occurrence(date(1990, 3, 10), True, date(2024, 6, 15)) == date(2025, 3, 10)

    def test_same_day_counts(self):
        assert next_occurrence(date(1990, 6, 15), True, date(2024, 6, 15)) == date(2024, 6, 15)

    def test_leap_day_clamps_on_common_years(self):
        assert next_occurrence(date(2020, 2, 29), True, date(2023, 1, 1)) == date(2023, 2, 28)
        assert next_occurrence(date(2020, 2, 29), True, date(2024, 1, 1)) == date(2024, 2, 29)

    def test_one_off_date_is_returned_unchanged(self):
        assert next_occurrence(date(2020, 5, 1), False, date(2024, 6, 15)) == date(2020, 5, 1)


def test_resolve_for_year_clamps_month_end():
    assert resolve_for_year(date(2020, 2, 29), 2021) == date(2021, 2, 28)
    assert resolve_for_year(date(2020, 1, 31), 2021) == date(2021, 1, 31)


class TestOccurrencesInRange:
    def test_recurring_source_yields_one_per_year(self):
        result = occurrences_in_range([source()], date(2024, 1, 1), date(2026, 12, 31))
        assert [o.occurrence_date for o in result] == [
            date(2024, 3, 10),
            date(2025, 3, 10),
            date(2026, 3, 10),
        ]
        assert [o.id for o in result] == ["src-2024", "src-2025", "src-2026"]

    def test_one_off_source_only_inside_range(self):
        one_off = source(on=date(2024, 5, 1), yearly=False)
        assert [o.id for o in occurrences_in_range([one_off], date(2024, 1, 1), date(2024, 12, 31))] == [
            "src-2024-05-01"
        ]
        assert occurrences_in_range([one_off], date(2025, 1, 1), date(2025, 12, 31)) == []

    def test_range_bounds_are_inclusive(self):
        result = occurrences_in_range([source()], date(2024, 3, 10), date(2024, 3, 10))
        assert len(result) == 1

    def test_sorted_by_date_then_title(self):
        sources = [
            source(title="Zoe", on=date(1990, 4, 1)),
            source(title="Anna", on=date(1985, 4, 1)),
            source(title="Early", on=date(2000, 1, 5)),
        ]
        result = occurrences_in_range(sources, date(2024, 1, 1), date(2024, 12, 31))
        assert [o.title for o in result] == ["Early", "Anna", "Zoe"]

    def test_ids_are_stable_across_calls(self):
        first = occurrences_in_range([source()], date(2024, 1, 1), date(2025, 12, 31))
        second = occurrences_in_range([source()], date(2024, 1, 1), date(2025, 12, 31))
        assert [o.id for o in first] == [o.id for o in second]


class TestParseIsoDate:
    def test_valid(self):
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize("value", ["2024-2-29", "29/02/2024", "2023-02-29", ""])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_iso_date(value)


class TestImportantDateService:
    async def test_get_occurrences_for_house(self, db, household, features):
        db.add(
            ImportantDate(
                house_id=household.house_id,
                title="Wedding anniversary",
                date=date(2015, 9, 12),
                type="ANNIVERSARY",
            )
        )
        await db.commit()

        service = ImportantDateService(db, features=features)
        result = await service.get_occurrences(
            household.house_id, date(2024, 1, 1), date(2024, 12, 31)
        )
        assert [o.occurrence_date for o in result] == [date(2024, 9, 12)]

    async def test_disabled_feature_returns_nothing(self, db, household):
        db.add(ImportantDate(house_id=household.house_id, title="X", date=date(2015, 9, 12)))
        await db.commit()

        service = ImportantDateService(db, features=Features(important_dates=False))
        assert await service.get_house_dates(household.house_id) == []

    async def test_reversed_range_is_rejected(self, db, features):
        service = ImportantDateService(db, features=features)
        with pytest.raises(ValidationError):
            await service.get_occurrences(uuid4(), date(2024, 12, 31), date(2024, 1, 1))
