"""Notification and notification settings models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from homanager.db.base import BaseModel


class NotificationType(str, Enum):
    """Kinds of in-app notifications."""

    TASK_ASSIGNED = "task_assigned"
    TASK_COMMENTED = "task_commented"
    TASK_STATUS = "task_status"
    TASK_REMINDER = "task_reminder"
    TASK_ESCALATION = "task_escalation"
    PROJECT_CREATED = "project_created"
    INVITE_ACCEPTED = "invite_accepted"


class Notification(BaseModel):
    """
    In-app notification for a user.

    The in-app record is the durable source of truth; email delivery is
    best effort and only stamps ``email_sent_at``. ``dedupe_key`` is unique
    so a logical event produces at most one notification.
    """

    __tablename__ = "notifications"

    # Recipient
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    house_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("houses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # Notification content
    notification_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="Type of notification (task_assigned, task_reminder, etc.)",
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_url: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        comment="Relative or absolute URL to navigate to",
    )
    dedupe_key: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        unique=True,
    )

    # Status
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    email_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )


class UserNotificationSettings(BaseModel):
    """
    User preferences for email delivery timing and escalation.

    Times are stored as minutes since midnight in the user's timezone.
    """

    __tablename__ = "user_notification_settings"

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Quiet hours
    quiet_hours_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    quiet_hours_start_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=22 * 60)
    quiet_hours_end_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=7 * 60)

    # Weekly delivery schedule
    schedule_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    schedule_days: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Allowed weekdays: MON, TUE, WED, THU, FRI, SAT, SUN",
    )
    schedule_start_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=8 * 60)
    schedule_end_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=18 * 60)

    # Escalation
    escalation_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    escalation_delay_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)

    timezone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="IANA timezone for quiet hours and schedule",
    )
