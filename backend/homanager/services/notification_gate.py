"""Decide whether an email notification may go out right now."""

from datetime import datetime

from homanager.services.notification_settings import NotificationSettingsData
from homanager.utils.time_window import (
    is_within_window,
    minutes_of_day,
    resolve_weekday,
    to_local,
)


def may_deliver_now(
    settings: NotificationSettingsData,
    now: datetime,
    bypass_quiet_hours: bool = False,
    bypass_schedule: bool = False,
) -> bool:
    """
    Check a user's weekly schedule and quiet hours against ``now``.

    ``now`` is converted to the user's timezone first (naive values are taken
    as local). The schedule rejects days outside the allowed set and times
    outside its window; quiet hours reject times inside theirs. Tasks can
    bypass either check for time-sensitive reminders. Only email delivery is
    gated; the in-app notification is always created.
    """
    local_now = to_local(now, settings.timezone)
    minutes = minutes_of_day(local_now)

    if settings.schedule_enabled and not bypass_schedule:
        if resolve_weekday(local_now) not in settings.schedule_days:
            return False
        if not is_within_window(
            minutes, settings.schedule_start_minutes, settings.schedule_end_minutes
        ):
            return False

    if settings.quiet_hours_enabled and not bypass_quiet_hours:
        if is_within_window(
            minutes, settings.quiet_hours_start_minutes, settings.quiet_hours_end_minutes
        ):
            return False

    return True
