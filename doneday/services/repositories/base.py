"""Shared repository plumbing: lookup, attach, save and sort-order helpers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlmodel import SQLModel, select

from doneday.core.errors import AppError
from doneday.core.result import Err, Ok, Result
from doneday.core.time import utcnow
from doneday.db.store import EntityStore, StoreContext

ModelT = TypeVar("ModelT", bound=SQLModel)
Clock = Callable[[], datetime]


class BaseRepository(Generic[ModelT]):
    """Store-backed repository for one entity type.

    Holds nothing but the store and a clock. Every public method opens the
    primary context itself; private helpers take an already-open context so a
    single call never re-enters the primary lock.
    """

    model: ClassVar[type[SQLModel]]
    not_found: ClassVar[Callable[[], AppError]]

    def __init__(self, store: EntityStore, *, clock: Clock = utcnow) -> None:
        self.store = store
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    async def get(self, record_id: UUID) -> Result[ModelT, AppError]:
        async with self.store.primary() as ctx:
            return await self._get(ctx, record_id)

    async def _get(self, ctx: StoreContext, record_id: UUID) -> Result[ModelT, AppError]:
        found = await ctx.get(self.model, record_id)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Err(self.not_found())
        return Ok(found.value)  # type: ignore[arg-type]

    async def _attach(self, ctx: StoreContext, entity: ModelT) -> Result[ModelT, AppError]:
        """Return the context's own instance of `entity`, loading it when detached."""
        if entity in ctx.session:
            return Ok(entity)
        return await self._get(ctx, entity.id)  # type: ignore[attr-defined]

    async def _exists(
        self,
        ctx: StoreContext,
        model: type[SQLModel],
        record_id: UUID,
    ) -> Result[bool, AppError]:
        found = await ctx.get(model, record_id)
        return found.map(lambda row: row is not None)

    async def _next_sort_order(
        self,
        ctx: StoreContext,
        *predicates: Any,
    ) -> Result[int, AppError]:
        column = self.model.sort_order  # type: ignore[attr-defined]
        statement = select(func.max(column))
        if predicates:
            statement = statement.where(*predicates)
        current = await ctx.scalar(statement)
        return current.map(lambda value: (value or 0) + 1)

    async def _commit(
        self,
        ctx: StoreContext,
        *,
        failure: Callable[[str], AppError] | None = None,
    ) -> Result[None, AppError]:
        """Commit, translating a store failure into `failure(reason)` when given."""
        committed = await ctx.commit()
        if isinstance(committed, Ok) or failure is None:
            return committed
        mapped = failure(str(committed.error.cause))
        mapped.__cause__ = committed.error
        return Err(mapped)

    async def _save(
        self,
        ctx: StoreContext,
        entity: ModelT,
        *,
        failure: Callable[[str], AppError] | None = None,
    ) -> Result[ModelT, AppError]:
        committed = await self._commit(ctx, failure=failure)
        return committed.map(lambda _: entity)

    async def _fetch(
        self,
        ctx: StoreContext,
        *predicates: Any,
        order_by: Any = (),
    ) -> Result[list[ModelT], AppError]:
        rows = await ctx.fetch(self.model, *predicates, order_by=order_by)
        return rows  # type: ignore[return-value]
