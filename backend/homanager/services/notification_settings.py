"""Per-user notification settings with documented defaults."""

from dataclasses import dataclass, field, replace
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.config import get_settings
from homanager.features import Features, get_features
from homanager.models.notification import UserNotificationSettings
from homanager.utils.time_window import WEEKDAYS, parse_time_to_minutes

logger = structlog.get_logger()

DEFAULT_SCHEDULE_DAYS = ("MON", "TUE", "WED", "THU", "FRI")


@dataclass(frozen=True)
class NotificationSettingsData:
    """Effective delivery settings of a user."""

    quiet_hours_enabled: bool = False
    quiet_hours_start_minutes: int = 22 * 60
    quiet_hours_end_minutes: int = 7 * 60
    schedule_enabled: bool = False
    schedule_days: tuple[str, ...] = field(default=DEFAULT_SCHEDULE_DAYS)
    schedule_start_minutes: int = 8 * 60
    schedule_end_minutes: int = 18 * 60
    escalation_enabled: bool = True
    escalation_delay_hours: int = 24
    timezone: str | None = None


DEFAULT_NOTIFICATION_SETTINGS = NotificationSettingsData()


def default_settings() -> NotificationSettingsData:
    """Defaults for users without stored settings, adjusted by configuration.

    Quiet hours and the schedule are off, escalation is on.
    """
    settings = get_settings()
    quiet_start = parse_time_to_minutes(settings.quiet_hours_start_default)
    quiet_end = parse_time_to_minutes(settings.quiet_hours_end_default)
    return replace(
        DEFAULT_NOTIFICATION_SETTINGS,
        quiet_hours_start_minutes=(
            quiet_start if quiet_start is not None
            else DEFAULT_NOTIFICATION_SETTINGS.quiet_hours_start_minutes
        ),
        quiet_hours_end_minutes=(
            quiet_end if quiet_end is not None
            else DEFAULT_NOTIFICATION_SETTINGS.quiet_hours_end_minutes
        ),
        escalation_delay_hours=settings.escalation_delay_hours_default,
        timezone=settings.default_timezone,
    )


def settings_from_row(row: UserNotificationSettings) -> NotificationSettingsData:
    """Convert a stored row; an empty weekday list means the default days."""
    days = tuple(day for day in (row.schedule_days or []) if day in WEEKDAYS)
    return NotificationSettingsData(
        quiet_hours_enabled=row.quiet_hours_enabled,
        quiet_hours_start_minutes=row.quiet_hours_start_minutes,
        quiet_hours_end_minutes=row.quiet_hours_end_minutes,
        schedule_enabled=row.schedule_enabled,
        schedule_days=days or DEFAULT_SCHEDULE_DAYS,
        schedule_start_minutes=row.schedule_start_minutes,
        schedule_end_minutes=row.schedule_end_minutes,
        escalation_enabled=row.escalation_enabled,
        escalation_delay_hours=row.escalation_delay_hours,
        timezone=row.timezone or get_settings().default_timezone,
    )


class NotificationSettingsService:
    """Lookup of a user's notification settings."""

    def __init__(self, db: AsyncSession, features: Features | None = None):
        self.db = db
        self.features = features or get_features()

    async def find(self, user_id: UUID) -> UserNotificationSettings | None:
        """The stored settings row, if the user has one."""
        if not self.features.notifications:
            return None
        result = await self.db.execute(
            select(UserNotificationSettings).where(
                UserNotificationSettings.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: UUID) -> NotificationSettingsData:
        """Effective settings: the stored row, or the defaults when absent."""
        row = await self.find(user_id)
        if row is None:
            logger.debug("notification_settings_defaulted", user_id=str(user_id))
            return default_settings()
        return settings_from_row(row)
