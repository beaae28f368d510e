"""User, house and membership models."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homanager.db.base import BaseModel


class User(BaseModel):
    """Application user. Authentication lives outside this backend."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Secret token for the read-only calendar subscription URL
    calendar_feed_token: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
        unique=True,
    )


class House(BaseModel):
    """A household shared by its members."""

    __tablename__ = "houses"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # The creator is the house's primary owner
    created_by_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    members: Mapped[list["HouseMember"]] = relationship(
        "HouseMember",
        back_populates="house",
        lazy="selectin",
    )


class HouseMember(BaseModel):
    """Membership of a user in a house."""

    __tablename__ = "house_members"
    __table_args__ = (
        UniqueConstraint("house_id", "user_id", name="uq_house_member"),
    )

    house_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("houses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="member",
    )  # owner, member

    house: Mapped["House"] = relationship(
        "House",
        back_populates="members",
        lazy="joined",
    )
