"""Tests for the escalation sweep."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from homanager.features import Features
from homanager.models import Notification, NotificationType, User, UserNotificationSettings
from homanager.services.escalation import EscalationService
from homanager.services.notification import NotificationEvent, NotificationService

SENT_AT = datetime(2024, 6, 12, 9, 0, tzinfo=timezone.utc)


async def send_source(db, household, task, now=SENT_AT, kind=NotificationType.TASK_ASSIGNED):
    service = NotificationService(db, features=Features())
    return await service.dispatch(
        NotificationEvent(
            user_id=household.member_id,
            house_id=household.house_id,
            task_id=task.id,
            notification_type=kind,
            title=f"About {task.title}",
            dedupe_key=f"{kind.value}:{task.id}:{now.isoformat()}",
        ),
        now=now,
    )


async def escalation_rows(db) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.notification_type == NotificationType.TASK_ESCALATION.value)
        .order_by(Notification.created_at, Notification.dedupe_key)
    )
    return list(result.scalars().all())


class TestEnsureTaskEscalations:
    async def test_stale_assignment_escalates_once(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(assignee_id=household.member_id)
        source = await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        first = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=25)
        )
        await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=26)
        )

        rows = await escalation_rows(db)
        assert len(first) == 1
        assert len(rows) == 1
        assert rows[0].user_id == household.owner_id
        assert rows[0].dedupe_key == (
            f"task-escalation:{task.id}:{household.owner_id}:{source.id}"
        )

    async def test_not_yet_due(self, db, household, features, email_service, make_task):
        task = await make_task(assignee_id=household.member_id)
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=23)
        )

        assert result == []

    async def test_read_notification_is_acknowledged(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(assignee_id=household.member_id)
        source = await send_source(db, household, task)
        await NotificationService(db, features=features).mark_read(
            source.id, household.member_id, now=SENT_AT + timedelta(hours=1)
        )
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=48)
        )

        assert result == []

    async def test_task_override_wins_over_user_settings(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(
            assignee_id=household.member_id,
            notification_escalation_delay_hours=2,
        )
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=3)
        )

        assert len(result) == 1

    async def test_task_can_disable_escalation(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(
            assignee_id=household.member_id,
            notification_escalation_enabled=False,
        )
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(days=3)
        )

        assert result == []

    async def test_user_settings_can_disable_escalation(
        self, db, household, features, email_service, make_task
    ):
        db.add(UserNotificationSettings(user_id=household.member_id, escalation_enabled=False))
        await db.commit()
        task = await make_task(assignee_id=household.member_id)
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(days=3)
        )

        assert result == []

    async def test_zero_delay_never_escalates(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(
            assignee_id=household.member_id,
            notification_escalation_delay_hours=0,
        )
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(days=3)
        )

        assert result == []

    async def test_creator_and_house_owner_are_both_told(
        self, db, household, features, email_service, make_task
    ):
        carol = User(email="carol@example.com", name="Carol")
        db.add(carol)
        await db.commit()
        task = await make_task(assignee_id=household.member_id, created_by_id=carol.id)
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=25)
        )

        assert {n.user_id for n in result} == {household.owner_id, carol.id}

    async def test_assignee_never_escalates_to_themselves(
        self, db, household, features, email_service, make_task
    ):
        # The house owner assigned the task to themselves
        task = await make_task(assignee_id=household.owner_id)
        service = NotificationService(db, features=features)
        await service.dispatch(
            NotificationEvent(
                user_id=household.owner_id,
                house_id=household.house_id,
                task_id=task.id,
                notification_type=NotificationType.TASK_REMINDER,
                title="Reminder",
            ),
            now=SENT_AT,
        )
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(days=2)
        )

        assert result == []

    async def test_new_unread_reminder_escalates_again(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(assignee_id=household.member_id)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        await send_source(db, household, task)
        await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(hours=25)
        )
        later = SENT_AT + timedelta(days=2)
        await send_source(db, household, task, now=later, kind=NotificationType.TASK_REMINDER)
        await sweeper.ensure_task_escalations(
            household.house_id, now=later + timedelta(hours=25)
        )

        assert len(await escalation_rows(db)) == 2

    async def test_done_tasks_are_ignored(
        self, db, household, features, email_service, make_task
    ):
        task = await make_task(assignee_id=household.member_id, status="done")
        await send_source(db, household, task)
        sweeper = EscalationService(db, email_service=email_service, features=features)

        result = await sweeper.ensure_task_escalations(
            household.house_id, now=SENT_AT + timedelta(days=3)
        )

        assert result == []

    async def test_disabled_feature_is_a_no_op(self, db, household, email_service):
        sweeper = EscalationService(
            db, email_service=email_service, features=Features(notifications=False)
        )

        assert await sweeper.ensure_task_escalations(household.house_id) == []
