"""Per-request refresh of a house's generated tasks and notifications.

There is no background worker: every request that reads house data calls
``HouseSyncService.refresh`` before building its response.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.exceptions import HomanagerError
from homanager.features import Features, get_features
from homanager.models.notification import Notification
from homanager.models.task import Task
from homanager.services.email import EmailService
from homanager.services.escalation import EscalationService
from homanager.services.notification import NotificationService
from homanager.services.recurring_task import RecurringTaskService

logger = structlog.get_logger()


@dataclass
class SyncResult:
    """What a refresh created."""

    tasks_created: list[Task] = field(default_factory=list)
    reminders: list[Notification] = field(default_factory=list)
    escalations: list[Notification] = field(default_factory=list)


class HouseSyncService:
    """Run recurrence expansion, reminders and escalations for one house."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: EmailService | None = None,
        features: Features | None = None,
        horizon_days: int | None = None,
    ):
        self.db = db
        self.features = features or get_features()
        self.recurring = RecurringTaskService(db, horizon_days=horizon_days)
        self.notifications = NotificationService(
            db, email_service=email_service, features=self.features
        )
        self.escalations = EscalationService(
            db, email_service=email_service, features=self.features
        )

    async def refresh(
        self,
        house_id: UUID,
        now: datetime | None = None,
        today: date | None = None,
    ) -> SyncResult:
        """
        Materialise due task instances, then send reminders and escalations.

        Expansion errors propagate. Reminder and escalation failures are
        logged and leave the request unaffected: they only mean missing
        notifications.
        """
        now = now or datetime.now(timezone.utc)
        today = today or now.date()
        result = SyncResult()

        result.tasks_created = await self.recurring.ensure_recurring_tasks(house_id, today=today)

        try:
            result.reminders = await self.notifications.ensure_task_reminders(
                house_id, today=today, now=now
            )
        except (SQLAlchemyError, HomanagerError) as e:
            await self.db.rollback()
            logger.error("task_reminders_failed", house_id=str(house_id), error=str(e))

        try:
            result.escalations = await self.escalations.ensure_task_escalations(house_id, now=now)
        except (SQLAlchemyError, HomanagerError) as e:
            await self.db.rollback()
            logger.error("task_escalations_failed", house_id=str(house_id), error=str(e))

        return result
