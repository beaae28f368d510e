"""Shared test fixtures.

Points the settings at an in-memory SQLite database before any homanager
import, and provides a fresh schema, a session and a small house per test.
"""

import os

# Patch env vars BEFORE any homanager imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("EMAIL_SERVER_HOST", "")
os.environ.setdefault("APP_BASE_URL", "https://home.example.com")

from datetime import datetime, time
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from homanager.db.base import Base
from homanager.features import Features, set_features
from homanager.models import House, HouseMember, Task, User
from homanager.models.task import RecurrenceUnit


@pytest.fixture
async def engine():
    """A private in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def features():
    features = Features(notifications=True, important_dates=True)
    set_features(features)
    yield features
    set_features(None)


@pytest.fixture
def email_service():
    """Email collaborator that accepts every message."""
    service = AsyncMock()
    service.send = AsyncMock(return_value=True)
    return service


@pytest.fixture
async def household(db):
    """A house owned by Alice, with Bob as a member."""
    alice = User(email="alice@example.com", name="Alice")
    bob = User(email="bob@example.com", name="Bob")
    db.add_all([alice, bob])
    await db.commit()

    house = House(name="Maison", created_by_id=alice.id)
    db.add(house)
    await db.commit()

    db.add_all(
        [
            HouseMember(house_id=house.id, user_id=alice.id, role="owner"),
            HouseMember(house_id=house.id, user_id=bob.id, role="member"),
        ]
    )
    await db.commit()

    return SimpleNamespace(
        house_id=house.id,
        owner_id=alice.id,
        member_id=bob.id,
    )


@pytest.fixture
def make_task(db, household):
    """Factory inserting a task in the test house."""

    async def _make_task(**overrides) -> Task:
        fields = {
            "house_id": household.house_id,
            "title": "Water the plants",
            "created_by_id": household.owner_id,
        }
        fields.update(overrides)
        task = Task(**fields)
        db.add(task)
        await db.commit()
        return task

    return _make_task


@pytest.fixture
def make_template(make_task):
    """Factory inserting a recurring template anchored at noon of ``anchor``."""

    async def _make_template(anchor, unit=RecurrenceUnit.DAILY, interval=1, **overrides) -> Task:
        return await make_task(
            is_template=True,
            recurrence_unit=unit.value,
            recurrence_interval=interval,
            due_date=datetime.combine(anchor, time(hour=12)),
            **overrides,
        )

    return _make_template
