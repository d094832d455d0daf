# ruff: noqa: INP001
"""Opening the store: migrations, persistence and the in-memory fallback."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, text

from doneday.core.config import Settings
from doneday.core.errors import StoreNotPersisted
from doneday.db.session import normalize_database_url, open_database, run_migrations
from doneday.db.store import EntityStore
from doneday.schemas.tasks import TaskCreate
from doneday.services.container import ServiceContainer
from doneday.services.repositories import TaskRepository

HEAD_REVISION = "5e2b8f4a9c13"


def _settings(database_url: str, **values: object) -> Settings:
    return Settings(  # type: ignore[arg-type]
        _env_file=None,
        environment="test",
        database_url=database_url,
        **values,
    )


def _unwritable_url(tmp_path: Path) -> str:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return f"sqlite+aiosqlite:///{blocker / 'doneday.db'}"


def test_normalize_database_url() -> None:
    assert normalize_database_url("sqlite:///x.db") == "sqlite+aiosqlite:///x.db"
    assert normalize_database_url("sqlite+aiosqlite://") == "sqlite+aiosqlite://"
    assert normalize_database_url("postgresql://db/x") == "postgresql://db/x"


def test_run_migrations_builds_the_schema(tmp_path: Path) -> None:
    db_file = tmp_path / "migrated.db"

    run_migrations(f"sqlite:///{db_file}")

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        inspector = inspect(engine)
        assert {"areas", "projects", "tasks", "tags", "task_tags"} <= set(
            inspector.get_table_names(),
        )
        columns = {column["name"] for column in inspector.get_columns("tasks")}
        assert {
            "reminder_enabled",
            "reminder_type",
            "reminder_time",
            "reminder_offset_minutes",
        } <= columns
        with engine.connect() as conn:
            version = conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one()
        assert version == HEAD_REVISION
    finally:
        engine.dispose()


@pytest.mark.asyncio
async def test_memory_database_is_not_persisted() -> None:
    opened = await open_database(_settings("sqlite+aiosqlite://"))

    assert opened.persisted is False
    assert opened.error is None
    await opened.engine.dispose()


@pytest.mark.asyncio
async def test_file_database_with_migrations_is_persisted(tmp_path: Path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'data' / 'doneday.db'}"
    opened = await open_database(_settings(url, db_auto_migrate=True))
    assert opened.persisted is True
    assert opened.error is None

    store = EntityStore(opened.engine, persisted=opened.persisted)
    task = (await TaskRepository(store).create_task(TaskCreate(title="Survives"))).unwrap()
    await store.close()

    reopened = EntityStore((await open_database(_settings(url))).engine)
    assert (await TaskRepository(reopened).get_task(task.id)).unwrap().title == "Survives"
    await reopened.close()


@pytest.mark.asyncio
async def test_unopenable_database_falls_back_to_memory(tmp_path: Path) -> None:
    opened = await open_database(_settings(_unwritable_url(tmp_path)))

    assert opened.persisted is False
    assert isinstance(opened.error, StoreNotPersisted)
    assert isinstance(opened.error.cause, OSError)

    store = EntityStore(opened.engine, persisted=False)
    assert (await TaskRepository(store).create_task(TaskCreate(title="Volatile"))).is_ok
    await store.close()


@pytest.mark.asyncio
async def test_container_reports_the_fallback(tmp_path: Path) -> None:
    container = await ServiceContainer.build(_settings(_unwritable_url(tmp_path)))
    try:
        assert container.store.persisted is False
        assert isinstance(container.errors.current, StoreNotPersisted)
    finally:
        await container.close()
