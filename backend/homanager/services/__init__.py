"""Business logic services."""

from homanager.services.calendar_feed import CalendarFeedService
from homanager.services.email import EmailService
from homanager.services.escalation import EscalationService
from homanager.services.house_sync import HouseSyncService
from homanager.services.important_date import ImportantDateService
from homanager.services.notification import NotificationEvent, NotificationService
from homanager.services.notification_settings import NotificationSettingsService
from homanager.services.recurring_task import RecurringTaskService

__all__ = [
    "CalendarFeedService",
    "EmailService",
    "EscalationService",
    "HouseSyncService",
    "ImportantDateService",
    "NotificationEvent",
    "NotificationService",
    "NotificationSettingsService",
    "RecurringTaskService",
]
