"""SQLAlchemy models package."""

from homanager.models.house import House, HouseMember, User
from homanager.models.important_date import ImportantDate, ImportantDateType
from homanager.models.notification import (
    Notification,
    NotificationType,
    UserNotificationSettings,
)
from homanager.models.task import RecurrenceUnit, Task, TaskStatus

__all__ = [
    # Users & Houses
    "User",
    "House",
    "HouseMember",
    # Tasks
    "Task",
    "TaskStatus",
    "RecurrenceUnit",
    # Important dates
    "ImportantDate",
    "ImportantDateType",
    # Notifications
    "Notification",
    "NotificationType",
    "UserNotificationSettings",
]
