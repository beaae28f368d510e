"""House endpoints: per-request sync, calendar view and important dates."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel
from sqlalchemy import and_, select

from homanager.api.deps import EmailDep, FeaturesDep, handle_homanager_error
from homanager.config import get_settings
from homanager.db.session import DBSession
from homanager.exceptions import HomanagerError
from homanager.models.task import Task
from homanager.services.calendar import build_calendar_items
from homanager.services.house_sync import HouseSyncService
from homanager.services.important_date import ImportantDateService, parse_iso_date

router = APIRouter()


class SyncResponse(BaseModel):
    """Counts of what a sync created."""

    house_id: UUID
    tasks_created: int
    reminders: int
    escalations: int


class CalendarItemResponse(BaseModel):
    """Calendar entry."""

    id: str
    title: str
    due_date: datetime | date
    kind: str
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

    class Config:
        from_attributes = True


class ImportantDateResponse(BaseModel):
    """Important date with its next occurrence."""

    id: UUID
    title: str
    description: str | None
    type: str
    date: date
    is_recurring_yearly: bool
    next_occurrence: date

    class Config:
        from_attributes = True


class OccurrenceResponse(BaseModel):
    """Occurrence of an important date."""

    id: str
    important_date_id: str
    title: str
    description: str | None
    type: str
    occurrence_date: date
    is_recurring_yearly: bool

    class Config:
        from_attributes = True


@router.post("/{house_id}/sync", response_model=SyncResponse)
async def sync_house(
    house_id: UUID,
    db: DBSession,
    email_service: EmailDep,
    features: FeaturesDep,
) -> SyncResponse:
    """Generate due recurring tasks, reminders and escalations for a house."""
    try:
        result = await HouseSyncService(
            db, email_service=email_service, features=features
        ).refresh(house_id)
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return SyncResponse(
        house_id=house_id,
        tasks_created=len(result.tasks_created),
        reminders=len(result.reminders),
        escalations=len(result.escalations),
    )


@router.get("/{house_id}/calendar", response_model=list[CalendarItemResponse])
async def get_house_calendar(
    house_id: UUID,
    db: DBSession,
    email_service: EmailDep,
    features: FeaturesDep,
    anchor: str | None = Query(None, description="Anchor date, YYYY-MM-DD"),
) -> list[CalendarItemResponse]:
    """Calendar items of a house: tasks, reminders and important dates."""
    try:
        anchor_date = parse_iso_date(anchor) if anchor else date.today()
        await HouseSyncService(
            db, email_service=email_service, features=features
        ).refresh(house_id)
    except HomanagerError as e:
        raise handle_homanager_error(e)

    result = await db.execute(
        select(Task)
        .where(
            and_(
                Task.house_id == house_id,
                Task.is_template == False,  # noqa: E712
                Task.due_date.is_not(None),
            )
        )
        .order_by(Task.due_date, Task.title)
    )
    tasks = result.scalars().all()
    important_dates = await ImportantDateService(db, features=features).get_house_dates(house_id)

    settings = get_settings()
    items = build_calendar_items(
        tasks,
        important_dates,
        anchor=anchor_date,
        years_before=settings.calendar_years_before,
        years_after=settings.calendar_years_after,
    )
    return [CalendarItemResponse.model_validate(item) for item in items]


@router.get("/{house_id}/important-dates", response_model=list[ImportantDateResponse])
async def list_important_dates(
    house_id: UUID,
    db: DBSession,
    features: FeaturesDep,
    reference: str | None = Query(None, description="Reference date, YYYY-MM-DD"),
) -> list[ImportantDateResponse]:
    """Important dates of a house, soonest next occurrence first."""
    try:
        reference_date = parse_iso_date(reference) if reference else None
        summaries = await ImportantDateService(db, features=features).list_upcoming(
            house_id, reference_date=reference_date
        )
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return [ImportantDateResponse.model_validate(s) for s in summaries]


@router.get("/{house_id}/important-dates/occurrences", response_model=list[OccurrenceResponse])
async def list_important_date_occurrences(
    house_id: UUID,
    db: DBSession,
    features: FeaturesDep,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
) -> list[OccurrenceResponse]:
    """Important-date occurrences inside an inclusive date range."""
    try:
        occurrences = await ImportantDateService(db, features=features).get_occurrences(
            house_id,
            parse_iso_date(date_from),
            parse_iso_date(date_to),
        )
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return [OccurrenceResponse.model_validate(o) for o in occurrences]
