"""Notification service for creating in-app notifications and emailing them."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Sequence
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from homanager.exceptions import NotFoundError
from homanager.features import Features, get_features
from homanager.models.house import HouseMember, User
from homanager.models.notification import Notification, NotificationType
from homanager.models.task import Task, TaskStatus
from homanager.services.email import EmailService, absolute_url
from homanager.services.email_templates import (
    NOTIFICATION_HTML,
    NOTIFICATION_TEXT,
    render_html,
    render_text,
)
from homanager.services.notification_gate import may_deliver_now
from homanager.services.notification_settings import NotificationSettingsService

logger = structlog.get_logger()


@dataclass(frozen=True)
class NotificationEvent:
    """A logical event to notify a user about."""

    user_id: UUID
    house_id: UUID
    notification_type: NotificationType
    title: str
    body: str | None = None
    link_url: str | None = None
    task_id: UUID | None = None
    dedupe_key: str | None = None
    send_email: bool = False
    bypass_quiet_hours: bool = False
    bypass_schedule: bool = False


def task_link(task_id: UUID) -> str:
    return f"/app/tasks/{task_id}"


class NotificationService:
    """Service for creating and managing user notifications."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: EmailService | None = None,
        features: Features | None = None,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.features = features or get_features()
        self.settings_service = NotificationSettingsService(db, features=self.features)

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(
        self,
        event: NotificationEvent,
        now: datetime | None = None,
    ) -> Notification | None:
        """
        Create a notification once per dedupe key and email it if allowed.

        Args:
            event: What to notify and to whom
            now: Current instant (defaults to the current UTC time)

        Returns:
            The new notification, the existing one carrying the same dedupe
            key, or None when notifications are unavailable
        """
        if not self.features.notifications:
            logger.debug("notifications_unavailable", notification_type=event.notification_type.value)
            return None

        now = now or datetime.now(timezone.utc)

        if event.dedupe_key:
            existing = await self.get_by_dedupe_key(event.dedupe_key)
            if existing is not None:
                logger.debug("notification_deduplicated", dedupe_key=event.dedupe_key)
                return existing

        notification = Notification(
            user_id=event.user_id,
            house_id=event.house_id,
            task_id=event.task_id,
            notification_type=event.notification_type.value,
            title=event.title,
            body=event.body,
            link_url=event.link_url,
            dedupe_key=event.dedupe_key,
            created_at=now,
        )
        self.db.add(notification)
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request inserted the same dedupe key first
            await self.db.rollback()
            if event.dedupe_key:
                existing = await self.get_by_dedupe_key(event.dedupe_key)
                if existing is not None:
                    logger.info("notification_dedupe_race", dedupe_key=event.dedupe_key)
                    return existing
            raise

        logger.info(
            "notification_created",
            notification_id=str(notification.id),
            user_id=str(event.user_id),
            notification_type=event.notification_type.value,
        )

        if event.send_email:
            settings = await self.settings_service.get(event.user_id)
            if may_deliver_now(
                settings,
                now,
                bypass_quiet_hours=event.bypass_quiet_hours,
                bypass_schedule=event.bypass_schedule,
            ):
                await self._send_email(notification, event, now)
            else:
                logger.debug(
                    "notification_email_held",
                    notification_id=str(notification.id),
                    user_id=str(event.user_id),
                )

        return notification

    async def _send_email(
        self,
        notification: Notification,
        event: NotificationEvent,
        now: datetime,
    ) -> bool:
        """Best-effort email; failures are logged and never undo the notification."""
        notification_id = notification.id
        user = await self.db.get(User, event.user_id)
        if user is None or not user.email:
            return False

        variables = {
            "name": user.name,
            "title": event.title,
            "body": event.body,
            "link": absolute_url(event.link_url),
        }

        try:
            delivered = await self.email_service.send(
                to=user.email,
                subject=event.title,
                text=render_text(NOTIFICATION_TEXT, variables),
                html=render_html(NOTIFICATION_HTML, variables),
            )
        except Exception as e:
            logger.warning(
                "notification_email_failed",
                notification_id=str(notification_id),
                user_id=str(event.user_id),
                error=str(e),
            )
            return False

        if not delivered:
            return False

        notification.email_sent_at = now
        await self.db.commit()
        logger.info("notification_email_sent", notification_id=str(notification_id))
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_by_dedupe_key(self, dedupe_key: str) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(Notification.dedupe_key == dedupe_key)
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> Sequence[Notification]:
        """Most recent notifications of a user."""
        if not self.features.notifications:
            return []

        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))
        query = query.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return result.scalars().all()

    async def unread_count(self, user_id: UUID) -> int:
        if not self.features.notifications:
            return 0
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
        )
        return result.scalar_one()

    async def mark_read(
        self,
        notification_id: UUID,
        user_id: UUID,
        now: datetime | None = None,
    ) -> Notification:
        """Mark a user's notification as read (acknowledged)."""
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification", str(notification_id))

        if notification.read_at is None:
            notification.read_at = now or datetime.now(timezone.utc)
            await self.db.commit()
            logger.info("notification_read", notification_id=str(notification_id))
        return notification

    # =========================================================================
    # Event notifiers
    # =========================================================================

    async def notify_task_assigned(
        self,
        house_id: UUID,
        task_id: UUID,
        task_title: str,
        assignee_id: UUID,
        actor_id: UUID,
        bypass_quiet_hours: bool = False,
        bypass_schedule: bool = False,
    ) -> Notification | None:
        if assignee_id == actor_id:
            return None
        return await self.dispatch(
            NotificationEvent(
                user_id=assignee_id,
                house_id=house_id,
                task_id=task_id,
                notification_type=NotificationType.TASK_ASSIGNED,
                title=f"New task assigned: {task_title}",
                body="You have a new task to take care of.",
                link_url=task_link(task_id),
                dedupe_key=f"task-assigned:{task_id}:{assignee_id}",
                send_email=True,
                bypass_quiet_hours=bypass_quiet_hours,
                bypass_schedule=bypass_schedule,
            )
        )

    async def notify_task_commented(
        self,
        house_id: UUID,
        task_id: UUID,
        task_title: str,
        recipient_id: UUID,
        actor_id: UUID,
        bypass_quiet_hours: bool = False,
        bypass_schedule: bool = False,
        now: datetime | None = None,
    ) -> Notification | None:
        if recipient_id == actor_id:
            return None
        now = now or datetime.now(timezone.utc)
        # Every comment is its own event
        stamp = int(now.timestamp() * 1000)
        return await self.dispatch(
            NotificationEvent(
                user_id=recipient_id,
                house_id=house_id,
                task_id=task_id,
                notification_type=NotificationType.TASK_COMMENTED,
                title=f'New comment on "{task_title}"',
                body="A comment was just added.",
                link_url=task_link(task_id),
                dedupe_key=f"task-comment:{task_id}:{recipient_id}:{stamp}",
                send_email=True,
                bypass_quiet_hours=bypass_quiet_hours,
                bypass_schedule=bypass_schedule,
            ),
            now=now,
        )

    async def notify_task_status_changed(
        self,
        house_id: UUID,
        task_id: UUID,
        task_title: str,
        recipient_id: UUID,
        actor_id: UUID,
        status: TaskStatus,
        bypass_quiet_hours: bool = False,
        bypass_schedule: bool = False,
    ) -> Notification | None:
        if recipient_id == actor_id:
            return None
        status_label = "completed" if status == TaskStatus.DONE else "updated"
        return await self.dispatch(
            NotificationEvent(
                user_id=recipient_id,
                house_id=house_id,
                task_id=task_id,
                notification_type=NotificationType.TASK_STATUS,
                title=f"Task {status_label}: {task_title}",
                body=f"The task was marked as {status_label}.",
                link_url=task_link(task_id),
                dedupe_key=f"task-status:{task_id}:{recipient_id}:{status.value}",
                send_email=True,
                bypass_quiet_hours=bypass_quiet_hours,
                bypass_schedule=bypass_schedule,
            )
        )

    async def notify_project_created(
        self,
        house_id: UUID,
        project_id: UUID,
        project_name: str,
        actor_id: UUID,
    ) -> list[Notification]:
        """Tell every other house member about a new project."""
        result = await self.db.execute(
            select(HouseMember.user_id).where(HouseMember.house_id == house_id)
        )
        member_ids = [user_id for user_id in result.scalars().all() if user_id != actor_id]

        notifications = []
        for user_id in member_ids:
            notification = await self.dispatch(
                NotificationEvent(
                    user_id=user_id,
                    house_id=house_id,
                    notification_type=NotificationType.PROJECT_CREATED,
                    title=f"New project: {project_name}",
                    body="A new project was added to the house.",
                    link_url="/app/projects",
                    dedupe_key=f"project-created:{project_id}:{user_id}",
                    send_email=True,
                )
            )
            if notification:
                notifications.append(notification)
        return notifications

    async def notify_invite_accepted(
        self,
        house_id: UUID,
        inviter_id: UUID,
        invitee_name: str | None = None,
    ) -> Notification | None:
        return await self.dispatch(
            NotificationEvent(
                user_id=inviter_id,
                house_id=house_id,
                notification_type=NotificationType.INVITE_ACCEPTED,
                title="Invitation accepted",
                body=(
                    f"{invitee_name} joined the house."
                    if invitee_name
                    else "A member joined the house."
                ),
                link_url="/app/settings",
                dedupe_key=f"invite-accepted:{house_id}:{inviter_id}:{invitee_name or 'member'}",
                send_email=True,
            )
        )

    # =========================================================================
    # Reminders
    # =========================================================================

    async def ensure_task_reminders(
        self,
        house_id: UUID,
        today: date | None = None,
        now: datetime | None = None,
    ) -> list[Notification]:
        """
        Send the reminder of every open task whose reminder day is today.

        The reminder day is the due date minus the task's reminder offset.
        Reminders go to the assignee, or to the creator of unassigned tasks,
        once per task, recipient and reminder day.
        """
        if not self.features.notifications:
            return []

        today = today or date.today()
        result = await self.db.execute(
            select(
                Task.id,
                Task.title,
                Task.due_date,
                Task.reminder_offset_days,
                Task.assignee_id,
                Task.created_by_id,
                Task.notification_bypass_quiet_hours,
                Task.notification_bypass_schedule,
            ).where(
                and_(
                    Task.house_id == house_id,
                    Task.is_template == False,  # noqa: E712
                    Task.status != TaskStatus.DONE.value,
                    Task.due_date.is_not(None),
                )
            )
        )
        tasks = result.all()

        sent = []
        for task in tasks:
            reminder_date = (task.due_date - timedelta(days=task.reminder_offset_days or 0)).date()
            if reminder_date != today:
                continue

            recipient_id = task.assignee_id or task.created_by_id
            notification = await self.dispatch(
                NotificationEvent(
                    user_id=recipient_id,
                    house_id=house_id,
                    task_id=task.id,
                    notification_type=NotificationType.TASK_REMINDER,
                    title=f"Reminder: {task.title}",
                    body=f"Due on {task.due_date.strftime('%d/%m/%Y')}.",
                    link_url=task_link(task.id),
                    dedupe_key=f"task-reminder:{task.id}:{recipient_id}:{reminder_date.isoformat()}",
                    send_email=True,
                    bypass_quiet_hours=task.notification_bypass_quiet_hours,
                    bypass_schedule=task.notification_bypass_schedule,
                ),
                now=now,
            )
            if notification:
                sent.append(notification)

        if sent:
            logger.info("task_reminders_processed", house_id=str(house_id), reminders=len(sent))
        return sent
