"""Important date model (birthdays, anniversaries, events)."""

import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from homanager.db.base import BaseModel


class ImportantDateType(str, Enum):
    """Kind of important date."""

    BIRTHDAY = "BIRTHDAY"
    ANNIVERSARY = "ANNIVERSARY"
    EVENT = "EVENT"
    OTHER = "OTHER"


class ImportantDate(BaseModel):
    """A dated household event, optionally recurring every year."""

    __tablename__ = "important_dates"

    house_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("houses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ImportantDateType.OTHER.value,
    )
    is_recurring_yearly: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
