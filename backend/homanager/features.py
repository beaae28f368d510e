"""Capability flags resolved once at startup.

Tables for optional features (notifications, important dates) may not exist
yet while a schema migration is rolling out. At startup the application
checks which tables exist and combines that with the configured feature
flags. Services consult the resulting ``Features`` and return empty results
for unavailable features.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from homanager.config import get_settings

logger = structlog.get_logger()

NOTIFICATION_TABLES = ("notifications", "user_notification_settings")
IMPORTANT_DATE_TABLES = ("important_dates",)


@dataclass(frozen=True)
class Features:
    """Which optional features are usable for this run."""

    notifications: bool = True
    important_dates: bool = True


_resolved: Features | None = None


def get_features() -> Features:
    """Return the features resolved at startup, or the configured flags."""
    if _resolved is not None:
        return _resolved
    settings = get_settings()
    return Features(
        notifications=settings.feature_notifications_enabled,
        important_dates=settings.feature_important_dates_enabled,
    )


def set_features(features: Features | None) -> None:
    """Replace the resolved features (``None`` resets to configured flags)."""
    global _resolved
    _resolved = features


async def resolve_features(engine: AsyncEngine) -> Features:
    """Inspect the database schema and record which features are available."""
    async with engine.connect() as conn:
        table_names = set(
            await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        )

    settings = get_settings()
    features = Features(
        notifications=settings.feature_notifications_enabled
        and all(name in table_names for name in NOTIFICATION_TABLES),
        important_dates=settings.feature_important_dates_enabled
        and all(name in table_names for name in IMPORTANT_DATE_TABLES),
    )
    set_features(features)

    logger.info(
        "features_resolved",
        notifications=features.notifications,
        important_dates=features.important_dates,
    )
    return features
