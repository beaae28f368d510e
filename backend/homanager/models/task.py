"""Task models: recurring templates and their dated instances."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from homanager.db.base import BaseModel


class RecurrenceUnit(str, Enum):
    """Recurrence step of a task template."""

    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Task(BaseModel):
    """
    Household task.

    A task is either a recurring template (``is_template``), which is never
    shown as an actionable item and only produces instances, or a concrete
    dated instance. Instances generated from a template point back to it via
    ``parent_id``; at most one instance exists per template and due date.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("parent_id", "due_date", name="uq_task_parent_due_date"),
    )

    house_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("houses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Basic info
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=TaskStatus.TODO.value
    )  # todo, in_progress, done

    # Date-only semantics, stored at a fixed hour (12:00) without timezone
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=False), nullable=True, index=True
    )
    reminder_offset_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Ownership and assignment
    created_by_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Links to other house entities (managed by the CRUD layer)
    zone_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    category_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    project_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    equipment_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    animal_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    person_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Recurrence (templates only)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_unit: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )  # NONE, DAILY, WEEKLY, MONTHLY, YEARLY
    recurrence_interval: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    recurrence_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    parent_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # Per-task notification overrides
    notification_bypass_quiet_hours: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    notification_bypass_schedule: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    notification_escalation_enabled: Mapped[bool | None] = mapped_column(
        Boolean, nullable=True
    )
    notification_escalation_delay_hours: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
