"""Minute-of-day helpers for delivery windows.

Windows are expressed as minutes since midnight. A window whose start is
after its end wraps past midnight (22:00-07:00), and a window whose start
equals its end is always open.
"""

import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def is_within_window(minutes: int, start: int, end: int) -> bool:
    """Check whether ``minutes`` falls inside ``[start, end)``, wrap-aware."""
    if start == end:
        return True
    if start < end:
        return start <= minutes < end
    return minutes >= start or minutes < end


def resolve_weekday(value: datetime) -> str:
    """Return the weekday code (MON..SUN) of a datetime."""
    return WEEKDAYS[value.weekday()]


def parse_time_to_minutes(raw_value: str | None) -> int | None:
    """Parse ``HH:MM`` into minutes since midnight, or None when malformed."""
    if not raw_value or not _TIME_PATTERN.match(raw_value):
        return None
    hours, minutes = (int(part) for part in raw_value.split(":"))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``, clamped to the day."""
    safe_minutes = max(0, min(MINUTES_PER_DAY - 1, minutes))
    return f"{safe_minutes // 60:02d}:{safe_minutes % 60:02d}"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from storage."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_local(value: datetime, tz_name: str | None) -> datetime:
    """Convert an aware datetime to the given IANA zone.

    Naive datetimes are taken as already local. Unknown zone names fall back
    to UTC.
    """
    if value.tzinfo is None or not tz_name:
        return value
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    return value.astimezone(zone)
