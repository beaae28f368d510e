"""Calendar subscription endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, Response
from pydantic import BaseModel

from homanager.api.deps import FeaturesDep, handle_homanager_error
from homanager.db.session import DBSession
from homanager.exceptions import HomanagerError
from homanager.services.calendar_feed import CalendarFeedService

router = APIRouter()


class CalendarFeedLink(BaseModel):
    """Subscription token and URL of a user's calendar feed."""

    token: str
    url: str


@router.get("/feed")
async def get_calendar_feed(
    db: DBSession,
    features: FeaturesDep,
    token: str = Query(..., min_length=10),
) -> Response:
    """Serve the iCalendar feed identified by a subscription token."""
    try:
        ics = await CalendarFeedService(db, features=features).render_feed(token)
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return Response(
        content=ics,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": 'inline; filename="homanager-calendar.ics"',
            "Cache-Control": "private, max-age=0, must-revalidate",
        },
    )


@router.post("/token", response_model=CalendarFeedLink)
async def ensure_calendar_token(
    db: DBSession,
    features: FeaturesDep,
    user_id: UUID = Query(...),
) -> CalendarFeedLink:
    """Get the user's feed link, creating it on first use."""
    try:
        token, url = await CalendarFeedService(db, features=features).ensure_token(user_id)
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return CalendarFeedLink(token=token, url=url)


@router.post("/token/regenerate", response_model=CalendarFeedLink)
async def regenerate_calendar_token(
    db: DBSession,
    features: FeaturesDep,
    user_id: UUID = Query(...),
) -> CalendarFeedLink:
    """Issue a new feed link; the previous one stops working."""
    try:
        token, url = await CalendarFeedService(db, features=features).regenerate_token(user_id)
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return CalendarFeedLink(token=token, url=url)
