"""Escalation of task notifications the assignee has not acknowledged."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy import Row, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.features import Features, get_features
from homanager.models.house import House
from homanager.models.notification import Notification, NotificationType
from homanager.models.task import Task, TaskStatus
from homanager.services.email import EmailService
from homanager.services.notification import (
    NotificationEvent,
    NotificationService,
    task_link,
)
from homanager.services.notification_settings import NotificationSettingsData
from homanager.utils.time_window import as_utc

logger = structlog.get_logger()

# Notifications that ask the assignee to act; reading one acknowledges it
ACKNOWLEDGEABLE_TYPES = (
    NotificationType.TASK_ASSIGNED.value,
    NotificationType.TASK_REMINDER.value,
    NotificationType.TASK_STATUS.value,
)


class EscalationService:
    """Escalate stale assignments to the task creator and the house owner."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: EmailService | None = None,
        features: Features | None = None,
    ):
        self.db = db
        self.features = features or get_features()
        self.notifications = NotificationService(
            db, email_service=email_service, features=self.features
        )

    async def ensure_task_escalations(
        self,
        house_id: UUID,
        now: datetime | None = None,
    ) -> list[Notification]:
        """
        Escalate every open assigned task whose last notification went unread.

        The task's own escalation settings win over the assignee's. Each
        stale source notification escalates at most once per recipient; a
        later reminder left unread can escalate again.

        Returns:
            Escalation notifications created or already present for this sweep
        """
        if not self.features.notifications:
            logger.debug("escalations_unavailable", house_id=str(house_id))
            return []

        now = now or datetime.now(timezone.utc)

        house = await self.db.get(House, house_id)
        if house is None:
            return []
        house_owner_id = house.created_by_id

        result = await self.db.execute(
            select(
                Task.id,
                Task.title,
                Task.assignee_id,
                Task.created_by_id,
                Task.notification_escalation_enabled,
                Task.notification_escalation_delay_hours,
                Task.notification_bypass_quiet_hours,
                Task.notification_bypass_schedule,
            )
            .where(
                and_(
                    Task.house_id == house_id,
                    Task.is_template == False,  # noqa: E712
                    Task.status != TaskStatus.DONE.value,
                    Task.assignee_id.is_not(None),
                )
            )
            .order_by(Task.id)
        )
        tasks = result.all()

        settings_cache: dict[UUID, NotificationSettingsData] = {}
        escalations: list[Notification] = []

        for task in tasks:
            settings = settings_cache.get(task.assignee_id)
            if settings is None:
                settings = await self.notifications.settings_service.get(task.assignee_id)
                settings_cache[task.assignee_id] = settings

            enabled = (
                task.notification_escalation_enabled
                if task.notification_escalation_enabled is not None
                else settings.escalation_enabled
            )
            if not enabled:
                continue

            delay_hours = (
                task.notification_escalation_delay_hours
                if task.notification_escalation_delay_hours is not None
                else settings.escalation_delay_hours
            )
            if delay_hours <= 0:
                continue

            source = await self._latest_source_notification(task.id, task.assignee_id)
            if source is None or source.read_at is not None:
                continue

            if now - as_utc(source.created_at) < timedelta(hours=delay_hours):
                continue

            recipients = {task.created_by_id, house_owner_id}
            recipients.discard(task.assignee_id)

            for recipient_id in sorted(recipients, key=str):
                notification = await self.notifications.dispatch(
                    NotificationEvent(
                        user_id=recipient_id,
                        house_id=house_id,
                        task_id=task.id,
                        notification_type=NotificationType.TASK_ESCALATION,
                        title=f"Escalation: {task.title}",
                        body="The assignee has not acknowledged this task.",
                        link_url=task_link(task.id),
                        dedupe_key=f"task-escalation:{task.id}:{recipient_id}:{source.id}",
                        send_email=True,
                        bypass_quiet_hours=task.notification_bypass_quiet_hours,
                        bypass_schedule=task.notification_bypass_schedule,
                    ),
                    now=now,
                )
                if notification:
                    escalations.append(notification)

            logger.debug(
                "task_escalated",
                task_id=str(task.id),
                source_notification_id=str(source.id),
                recipients=len(recipients),
            )

        return escalations

    async def _latest_source_notification(self, task_id: UUID, assignee_id: UUID) -> Row | None:
        """Most recent assignment/reminder/status notification sent to the assignee."""
        result = await self.db.execute(
            select(Notification.id, Notification.read_at, Notification.created_at)
            .where(
                Notification.task_id == task_id,
                Notification.user_id == assignee_id,
                Notification.notification_type.in_(ACKNOWLEDGEABLE_TYPES),
            )
            .order_by(Notification.created_at.desc())
            .limit(1)
        )
        return result.first()
