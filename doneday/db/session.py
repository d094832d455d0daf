"""Database engine construction, startup migrations and the in-memory fallback."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from alembic.config import Config
from alembic.util.exc import CommandError
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from doneday import models as _models
from doneday.core.config import PROJECT_ROOT, Settings
from doneday.core.errors import StoreNotPersisted
from doneday.core.logging import get_logger

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models

MEMORY_DATABASE_URL = "sqlite+aiosqlite://"
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"
logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Map plain SQLite URLs onto the async driver."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "sqlite":
        return f"sqlite+aiosqlite://{rest}"
    return database_url


def _sqlite_file(database_url: str) -> Path | None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database).expanduser()


def create_engine(database_url: str) -> AsyncEngine:
    url = normalize_database_url(database_url)
    if _sqlite_file(url) is None and url.startswith("sqlite"):
        # One shared connection, otherwise every session gets its own empty database.
        return create_async_engine(url, poolclass=StaticPool)
    return create_async_engine(url)


def _alembic_config(database_url: str) -> Config:
    alembic_ini = PROJECT_ROOT / "alembic.ini"

    alembic_cfg = Config(str(alembic_ini)) if alembic_ini.exists() else Config()
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    alembic_cfg.set_main_option("sqlalchemy.url", normalize_database_url(database_url))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def has_migrations() -> bool:
    versions_dir = MIGRATIONS_DIR / "versions"
    return versions_dir.is_dir() and any(versions_dir.glob("*.py"))


def run_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the latest revision."""
    from alembic import command

    logger.info("Running database migrations.")
    command.upgrade(_alembic_config(database_url), "head")
    logger.info("Database migrations complete.")


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db(engine: AsyncEngine, *, database_url: str, auto_migrate: bool) -> None:
    """Initialize database schema, running migrations when configured."""
    sqlite_file = _sqlite_file(normalize_database_url(database_url))
    if sqlite_file is not None:
        sqlite_file.parent.mkdir(parents=True, exist_ok=True)

    if auto_migrate and sqlite_file is not None:
        if has_migrations():
            logger.info("Running migrations on startup")
            await asyncio.to_thread(run_migrations, database_url)
            return
        logger.warning("No migration revisions found; falling back to create_all")

    await create_schema(engine)


async def create_memory_engine() -> AsyncEngine:
    engine = create_engine(MEMORY_DATABASE_URL)
    await create_schema(engine)
    return engine


@dataclass(frozen=True)
class OpenedDatabase:
    """Engine plus whether it is backed by durable storage."""

    engine: AsyncEngine
    persisted: bool
    error: StoreNotPersisted | None = None


async def open_database(settings: Settings) -> OpenedDatabase:
    """Open the configured store, degrading to an in-memory one on failure."""
    engine: AsyncEngine | None = None
    try:
        engine = create_engine(settings.database_url)
        await init_db(
            engine,
            database_url=settings.database_url,
            auto_migrate=settings.db_auto_migrate,
        )
    except (SQLAlchemyError, ArgumentError, CommandError, OSError) as exc:
        logger.warning(
            "store.open_failed",
            extra={"database_url": settings.database_url, "error": str(exc)},
        )
        if engine is not None:
            await engine.dispose()
        fallback = await create_memory_engine()
        logger.warning("store.not_persisted", extra={"reason": "using in-memory fallback store"})
        return OpenedDatabase(engine=fallback, persisted=False, error=StoreNotPersisted(exc))

    logger.info(
        "store.opened",
        extra={"database_url": settings.database_url, "migrated": settings.db_auto_migrate},
    )
    url = normalize_database_url(settings.database_url)
    persisted = _sqlite_file(url) is not None or not url.startswith("sqlite")
    return OpenedDatabase(engine=engine, persisted=persisted)
