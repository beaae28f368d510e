"""Notification endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel

from homanager.api.deps import EmailDep, FeaturesDep, handle_homanager_error
from homanager.db.session import DBSession
from homanager.exceptions import HomanagerError
from homanager.services.notification import NotificationService

router = APIRouter()


class NotificationResponse(BaseModel):
    """Notification response."""

    id: UUID
    house_id: UUID
    task_id: UUID | None
    notification_type: str
    title: str
    body: str | None
    link_url: str | None
    created_at: datetime
    read_at: datetime | None
    email_sent_at: datetime | None

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    """Unread notification count."""

    count: int


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    db: DBSession,
    email_service: EmailDep,
    features: FeaturesDep,
    user_id: UUID = Query(...),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> list[NotificationResponse]:
    """List a user's most recent notifications."""
    service = NotificationService(db, email_service=email_service, features=features)
    notifications = await service.list_for_user(user_id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: DBSession,
    email_service: EmailDep,
    features: FeaturesDep,
    user_id: UUID = Query(...),
) -> UnreadCountResponse:
    """Number of unread notifications of a user."""
    service = NotificationService(db, email_service=email_service, features=features)
    return UnreadCountResponse(count=await service.unread_count(user_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    db: DBSession,
    email_service: EmailDep,
    features: FeaturesDep,
    user_id: UUID = Query(...),
) -> NotificationResponse:
    """Mark a notification as read, acknowledging it."""
    service = NotificationService(db, email_service=email_service, features=features)
    try:
        notification = await service.mark_read(notification_id, user_id)
    except HomanagerError as e:
        raise handle_homanager_error(e)
    return NotificationResponse.model_validate(notification)
