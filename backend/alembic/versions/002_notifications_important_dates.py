"""Add notifications, notification settings and important dates.

These tables back optional features; the application checks for them at
startup and disables the matching feature while they are missing.

Revision ID: 002
Revises: 001
Create Date: 2026-02-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create notifications table
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("house_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("task_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "notification_type",
            sa.String(50),
            nullable=False,
            comment="Type of notification (task_assigned, task_reminder, etc.)",
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column(
            "link_url",
            sa.String(1000),
            nullable=True,
            comment="Relative or absolute URL to navigate to",
        ),
        sa.Column("dedupe_key", sa.String(500), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["house_id"], ["houses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("dedupe_key"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_house_id", "notifications", ["house_id"])
    op.create_index("ix_notifications_task_id", "notifications", ["task_id"])
    op.create_index(
        "ix_notifications_notification_type", "notifications", ["notification_type"]
    )
    # Unread lookups per user
    op.create_index(
        "ix_notifications_user_unread",
        "notifications",
        ["user_id", "read_at"],
    )

    # Create user_notification_settings table
    op.create_table(
        "user_notification_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quiet_hours_enabled", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("quiet_hours_start_minutes", sa.Integer(), nullable=False, server_default="1320"),
        sa.Column("quiet_hours_end_minutes", sa.Integer(), nullable=False, server_default="420"),
        sa.Column("schedule_enabled", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "schedule_days",
            sa.JSON(),
            nullable=False,
            server_default="[]",
            comment="Allowed weekdays: MON, TUE, WED, THU, FRI, SAT, SUN",
        ),
        sa.Column("schedule_start_minutes", sa.Integer(), nullable=False, server_default="480"),
        sa.Column("schedule_end_minutes", sa.Integer(), nullable=False, server_default="1080"),
        sa.Column("escalation_enabled", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("escalation_delay_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column(
            "timezone",
            sa.String(50),
            nullable=True,
            comment="IANA timezone for quiet hours and schedule",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id"),
    )

    # Create important_dates table
    op.create_table(
        "important_dates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("house_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="OTHER"),
        sa.Column("is_recurring_yearly", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["house_id"], ["houses.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_important_dates_house_id", "important_dates", ["house_id"])


def downgrade() -> None:
    op.drop_index("ix_important_dates_house_id", table_name="important_dates")
    op.drop_table("important_dates")
    op.drop_table("user_notification_settings")
    op.drop_index("ix_notifications_user_unread", table_name="notifications")
    op.drop_table("notifications")
