"""Entity store: owns records and transactional commit.

One primary context serves interactive work; its calls are serialised by a lock.
Secondary contexts are independent sessions for batch and background work. A
successful commit on a secondary context publishes a `ChangeSet`, which the
primary context applies (refresh or expunge of the touched identities) before
its next read. Concurrent writers to the same record resolve last-write-wins.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Callable, Collection, Iterable, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm.util import identity_key
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from doneday.core.errors import StoreFetchFailed, StoreSaveFailed
from doneday.core.logging import TRACE_LEVEL, get_logger
from doneday.core.result import Err, Ok, Result
from doneday.core.time import utcnow
from doneday.models import Area, Project, Tag, Task, TaskTag

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)
Operation = Literal["insert", "update", "delete"]
CommitListener = Callable[["ChangeSet"], None]

# Deletion order respects foreign keys: links first, areas last.
_ENTITY_MODELS: tuple[type[SQLModel], ...] = (TaskTag, Task, Tag, Project, Area)


@dataclass(frozen=True)
class RecordChange:
    """One record touched by a commit.

    Inserts also carry a snapshot of the inserted column values.
    """

    entity: str
    record_id: Any
    operation: Operation
    fields: frozenset[str] = frozenset()
    values: tuple[tuple[str, Any], ...] = ()

    def value(self, name: str, default: Any = None) -> Any:
        return dict(self.values).get(name, default)


@dataclass(frozen=True)
class ChangeSet:
    """Record-level summary of a single successful commit."""

    origin: str
    changes: tuple[RecordChange, ...]
    committed_at: datetime = field(default_factory=utcnow)

    def for_entity(self, entity: str) -> tuple[RecordChange, ...]:
        return tuple(change for change in self.changes if change.entity == entity)

    def touches(self, entity: str, fields: Collection[str] | None = None) -> bool:
        """Return whether any change hits `entity` (and one of `fields`, if given).

        Inserts and deletes always count as touching every field.
        """
        for change in self.for_entity(entity):
            if fields is None or change.operation != "update":
                return True
            if change.fields.intersection(fields):
                return True
        return False


def _entity_name(obj: SQLModel) -> str:
    return str(obj.__tablename__)


def _record_key(obj: SQLModel) -> Any:
    state = sa_inspect(obj)
    values = tuple(state.mapper.primary_key_from_instance(obj))
    return values[0] if len(values) == 1 else values


def _collect_changes(session: AsyncSession) -> tuple[RecordChange, ...]:
    changes: list[RecordChange] = []
    for obj in session.new:
        keys = [attr.key for attr in sa_inspect(obj).mapper.column_attrs]
        snapshot = tuple((key, getattr(obj, key, None)) for key in keys)
        changes.append(
            RecordChange(
                _entity_name(obj),
                _record_key(obj),
                "insert",
                frozenset(keys),
                snapshot,
            ),
        )
    for obj in session.dirty:
        if not session.is_modified(obj):
            continue
        state = sa_inspect(obj)
        touched = frozenset(attr.key for attr in state.attrs if attr.history.has_changes())
        changes.append(RecordChange(_entity_name(obj), _record_key(obj), "update", touched))
    for obj in session.deleted:
        changes.append(RecordChange(_entity_name(obj), _record_key(obj), "delete"))
    return tuple(changes)


class StoreContext:
    """A unit of work over one session: insert, fetch, delete, commit."""

    def __init__(
        self,
        store: EntityStore,
        session: AsyncSession,
        *,
        name: str,
        is_primary: bool,
    ) -> None:
        self._store = store
        self._session = session
        self.name = name
        self.is_primary = is_primary

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def has_changes(self) -> bool:
        session = self._session
        if session.new or session.deleted:
            return True
        return any(session.is_modified(obj) for obj in session.dirty)

    def insert(self, entity: SQLModel) -> None:
        self._session.add(entity)

    def insert_all(self, entities: Iterable[SQLModel]) -> None:
        self._session.add_all(list(entities))

    async def delete(self, entity: SQLModel) -> None:
        await self._session.delete(entity)

    async def fetch(
        self,
        model: type[ModelT],
        *predicates: Any,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> Result[list[ModelT], StoreFetchFailed]:
        statement = select(model)
        if predicates:
            statement = statement.where(*predicates)
        if order_by:
            statement = statement.order_by(*order_by)
        if limit is not None:
            statement = statement.limit(limit)
        try:
            await self._before_read()
            rows = (await self._session.exec(statement)).all()
        except SQLAlchemyError as exc:
            return await self._fetch_failed(model.__name__, exc)
        logger.log(
            TRACE_LEVEL,
            "store.fetch",
            extra={"context": self.name, "entity": model.__name__, "count": len(rows)},
        )
        return Ok(list(rows))

    async def fetch_one(
        self,
        model: type[ModelT],
        *predicates: Any,
        order_by: Sequence[Any] = (),
    ) -> Result[ModelT | None, StoreFetchFailed]:
        result = await self.fetch(model, *predicates, order_by=order_by, limit=1)
        return result.map(lambda rows: rows[0] if rows else None)

    async def get(self, model: type[ModelT], ident: Any) -> Result[ModelT | None, StoreFetchFailed]:
        try:
            await self._before_read()
            return Ok(await self._session.get(model, ident))
        except SQLAlchemyError as exc:
            return await self._fetch_failed(model.__name__, exc)

    async def scalar(self, statement: Any) -> Result[Any, StoreFetchFailed]:
        """Run a single-value query such as an aggregate."""
        try:
            await self._before_read()
            return Ok((await self._session.exec(statement)).first())
        except SQLAlchemyError as exc:
            return await self._fetch_failed("scalar", exc)

    async def commit(self) -> Result[None, StoreSaveFailed]:
        """Atomically apply pending mutations; a no-op when nothing is pending."""
        if not self.has_changes:
            return Ok(None)
        changes = _collect_changes(self._session)
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            logger.warning(
                "store.commit.failed",
                extra={"context": self.name, "changes": len(changes), "error": str(exc)},
            )
            await self._reload_committed_state()
            return Err(StoreSaveFailed(exc))
        changeset = ChangeSet(origin=self.name, changes=changes)
        logger.debug(
            "store.commit.ok",
            extra={"context": self.name, "changes": len(changes)},
        )
        self._store.publish(changeset, primary=self.is_primary)
        return Ok(None)

    async def rollback(self) -> None:
        await self._reload_committed_state()

    async def _before_read(self) -> None:
        if self.is_primary:
            await self._store.apply_pending(self)

    async def _fetch_failed(self, entity: str, exc: SQLAlchemyError) -> Err[StoreFetchFailed]:
        logger.warning(
            "store.fetch.failed",
            extra={"context": self.name, "entity": entity, "error": str(exc)},
        )
        await self._reload_committed_state()
        return Err(StoreFetchFailed(exc))

    async def _reload_committed_state(self) -> None:
        """Discard uncommitted work and bring loaded instances back to committed values."""
        session = self._session
        try:
            await session.rollback()
        except SQLAlchemyError:
            logger.exception("store.rollback.failed", extra={"context": self.name})
            return
        for obj in list(session.identity_map.values()):
            try:
                await session.refresh(obj)
            except SQLAlchemyError:
                # Row no longer exists in committed state.
                session.expunge(obj)


class EntityStore:
    """Owner of all entity records and of the primary/secondary contexts."""

    def __init__(self, engine: AsyncEngine, *, persisted: bool = True) -> None:
        self.engine = engine
        self.persisted = persisted
        self._primary_session = AsyncSession(engine, expire_on_commit=False)
        self._primary = StoreContext(self, self._primary_session, name="primary", is_primary=True)
        self._primary_lock = asyncio.Lock()
        self._pending_merges: deque[ChangeSet] = deque()
        self._listeners: list[CommitListener] = []
        self._models = {str(model.__tablename__): model for model in _ENTITY_MODELS}
        # In-memory engines hand every session the same connection.
        self._shared_connection = isinstance(engine.pool, StaticPool)

    @asynccontextmanager
    async def primary(self) -> AsyncIterator[StoreContext]:
        """Serialised access to the interactive context."""
        async with self._primary_lock:
            try:
                yield self._primary
            finally:
                if self._primary.has_changes:
                    logger.warning("store.primary.uncommitted_discarded")
                    await self._primary.rollback()

    @asynccontextmanager
    async def secondary(self, name: str = "secondary") -> AsyncIterator[StoreContext]:
        """Independent context for batch or background work."""
        async with AsyncExitStack() as stack:
            if self._shared_connection:
                # Transactions on a shared connection must not interleave.
                await stack.enter_async_context(self._primary_lock)
            session = AsyncSession(self.engine, expire_on_commit=False)
            context = StoreContext(self, session, name=name, is_primary=False)
            try:
                yield context
            finally:
                if context.has_changes:
                    logger.warning(
                        "store.secondary.uncommitted_discarded",
                        extra={"context": name},
                    )
                await session.close()

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """Register a committed-mutation listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, changeset: ChangeSet, *, primary: bool) -> None:
        if not primary:
            self._pending_merges.append(changeset)
        for listener in list(self._listeners):
            try:
                listener(changeset)
            except Exception:
                logger.exception("store.listener.failed", extra={"origin": changeset.origin})

    @property
    def pending_merges(self) -> int:
        return len(self._pending_merges)

    async def apply_pending(self, context: StoreContext) -> None:
        """Apply queued secondary change sets to the primary identity map."""
        session = context.session
        while self._pending_merges:
            changeset = self._pending_merges.popleft()
            applied = 0
            for change in changeset.changes:
                model = self._models.get(change.entity)
                if model is None:
                    continue
                obj = session.identity_map.get(identity_key(model, change.record_id))
                if obj is None:
                    continue
                if change.operation == "delete":
                    session.expunge(obj)
                elif not session.is_modified(obj):
                    # A pending local write wins when it commits.
                    await session.refresh(obj)
                applied += 1
            logger.debug(
                "store.merge.applied",
                extra={"origin": changeset.origin, "records": applied},
            )

    async def clear_all(self) -> Result[None, StoreSaveFailed | StoreFetchFailed]:
        """Hard-delete every record of every entity type."""
        async with self.primary() as ctx:
            for model in _ENTITY_MODELS:
                rows = await ctx.fetch(model)
                if isinstance(rows, Err):
                    return rows
                for row in rows.value:
                    await ctx.delete(row)
            return await ctx.commit()

    async def close(self) -> None:
        await self._primary_session.close()
        await self.engine.dispose()
