# ruff: noqa: INP001
"""Pytest configuration shared across backend tests."""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Import-time settings must never point at the user's real data directory.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TIMEZONE"] = "UTC"

from doneday.db.session import create_memory_engine  # noqa: E402
from doneday.db.store import EntityStore  # noqa: E402
from doneday.services.error_channel import ErrorChannel  # noqa: E402
from doneday.services.repositories import (  # noqa: E402
    AreaRepository,
    ProjectRepository,
    TagRepository,
    TaskRepository,
)

NOW = datetime(2026, 3, 10, 12, 0, 0)


class FakeClock:
    """Settable naive-UTC clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def store() -> AsyncIterator[EntityStore]:
    entity_store = EntityStore(await create_memory_engine(), persisted=False)
    yield entity_store
    await entity_store.close()


@pytest.fixture
def errors() -> ErrorChannel:
    return ErrorChannel()


@pytest.fixture
def tasks(store: EntityStore, clock: FakeClock) -> TaskRepository:
    return TaskRepository(store, clock=clock)


@pytest.fixture
def projects(store: EntityStore, clock: FakeClock) -> ProjectRepository:
    return ProjectRepository(store, clock=clock)


@pytest.fixture
def areas(store: EntityStore, clock: FakeClock) -> AreaRepository:
    return AreaRepository(store, clock=clock)


@pytest.fixture
def tags(store: EntityStore, clock: FakeClock) -> TagRepository:
    return TagRepository(store, clock=clock)
