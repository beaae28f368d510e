"""Important date service: yearly recurrence projection and lookups."""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol, Sequence
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.exceptions import ValidationError
from homanager.features import Features, get_features
from homanager.models.important_date import ImportantDate

logger = structlog.get_logger()

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RecurringSource(Protocol):
    """Anything that can be projected: an ImportantDate row or a plain record."""

    id: UUID | str
    title: str
    description: str | None
    date: date
    type: str
    is_recurring_yearly: bool


@dataclass(frozen=True)
class ImportantDateOccurrence:
    """A computed, never persisted, occurrence of an important date."""

    id: str
    important_date_id: str
    title: str
    description: str | None
    type: str
    occurrence_date: date
    is_recurring_yearly: bool


@dataclass(frozen=True)
class ImportantDateSummary:
    """An important date with its next occurrence."""

    id: UUID
    title: str
    description: str | None
    type: str
    date: date
    is_recurring_yearly: bool
    next_occurrence: date


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string."""
    if not ISO_DATE_PATTERN.match(value or ""):
        raise ValidationError("Expected date format: YYYY-MM-DD", field="date")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}", field="date") from e


def resolve_for_year(source_date: date, year: int) -> date:
    """Place the source month/day in ``year``, clamping to the month's last day.

    Feb 29 becomes Feb 28 on non-leap years.
    """
    last_day = calendar.monthrange(year, source_date.month)[1]
    return date(year, source_date.month, min(source_date.day, last_day))


def next_occurrence(
    source_date: date,
    is_recurring_yearly: bool,
    reference_date: date | None = None,
) -> date:
    """Next occurrence on or after ``reference_date``.

    Non-recurring dates are returned unchanged, even when in the past.
    """
    if not is_recurring_yearly:
        return source_date

    reference = reference_date or date.today()
    candidate = resolve_for_year(source_date, reference.year)
    if candidate >= reference:
        return candidate
    return resolve_for_year(source_date, reference.year + 1)


def occurrences_in_range(
    sources: Iterable[RecurringSource],
    date_from: date,
    date_to: date,
) -> list[ImportantDateOccurrence]:
    """Expand important dates over the inclusive range ``[date_from, date_to]``.

    Recurring sources are tried one year either side of the range so that
    clamped dates near the boundaries are not missed. Occurrence ids are
    derived from the source id and the year (recurring) or the ISO date
    (one-off), so repeated calls yield identical ids.
    """
    occurrences: list[ImportantDateOccurrence] = []

    for item in sources:
        source_id = str(item.id)
        if not item.is_recurring_yearly:
            if date_from <= item.date <= date_to:
                occurrences.append(
                    ImportantDateOccurrence(
                        id=f"{source_id}-{item.date.isoformat()}",
                        important_date_id=source_id,
                        title=item.title,
                        description=item.description,
                        type=item.type,
                        occurrence_date=item.date,
                        is_recurring_yearly=False,
                    )
                )
            continue

        for year in range(date_from.year - 1, date_to.year + 2):
            occurrence_date = resolve_for_year(item.date, year)
            if occurrence_date < date_from or occurrence_date > date_to:
                continue
            occurrences.append(
                ImportantDateOccurrence(
                    id=f"{source_id}-{year}",
                    important_date_id=source_id,
                    title=item.title,
                    description=item.description,
                    type=item.type,
                    occurrence_date=occurrence_date,
                    is_recurring_yearly=True,
                )
            )

    occurrences.sort(key=lambda o: (o.occurrence_date, o.title))
    return occurrences


class ImportantDateService:
    """Service for reading a house's important dates."""

    def __init__(self, db: AsyncSession, features: Features | None = None):
        self.db = db
        self.features = features or get_features()

    async def get_house_dates(self, house_id: UUID) -> Sequence[ImportantDate]:
        """All important dates of a house, or none when the feature is off."""
        if not self.features.important_dates:
            logger.debug("important_dates_unavailable", house_id=str(house_id))
            return []

        result = await self.db.execute(
            select(ImportantDate)
            .where(ImportantDate.house_id == house_id)
            .order_by(ImportantDate.date, ImportantDate.title)
        )
        return result.scalars().all()

    async def get_occurrences(
        self,
        house_id: UUID,
        date_from: date,
        date_to: date,
    ) -> list[ImportantDateOccurrence]:
        """Occurrences of the house's important dates inside a window."""
        if date_from > date_to:
            raise ValidationError("Range start must not be after its end", field="from")
        sources = await self.get_house_dates(house_id)
        return occurrences_in_range(sources, date_from, date_to)

    async def list_upcoming(
        self,
        house_id: UUID,
        reference_date: date | None = None,
    ) -> list[ImportantDateSummary]:
        """The house's important dates ordered by their next occurrence."""
        reference = reference_date or date.today()
        summaries = [
            ImportantDateSummary(
                id=item.id,
                title=item.title,
                description=item.description,
                type=item.type,
                date=item.date,
                is_recurring_yearly=item.is_recurring_yearly,
                next_occurrence=next_occurrence(item.date, item.is_recurring_yearly, reference),
            )
            for item in await self.get_house_dates(house_id)
        ]
        summaries.sort(key=lambda s: (s.next_occurrence, s.title))
        return summaries
