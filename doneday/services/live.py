"""Live query results that reload after every committed mutation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Collection
from typing import Generic, TypeVar

from doneday.core.errors import AppError
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.db.store import ChangeSet, EntityStore
from doneday.models import Task
from doneday.services.error_channel import ErrorChannel
from doneday.services.repositories.tasks import TaskFilter, TaskRepository

logger = get_logger(__name__)

T = TypeVar("T")
Loader = Callable[[], Awaitable[Result[list[T], AppError]]]
ItemsListener = Callable[[list[T]], None]


class LiveQuery(Generic[T]):
    """Holds the latest result of `loader` and refreshes it when `entities` change.

    Commits only mark the query stale and schedule a background reload, so the
    committing caller never waits on it. Reload failures go to the error channel
    and the previous items are kept.
    """

    def __init__(
        self,
        store: EntityStore,
        loader: Loader[T],
        *,
        entities: Collection[str],
        errors: ErrorChannel | None = None,
        name: str = "live",
    ) -> None:
        self._store = store
        self._loader = loader
        self._entities = frozenset(entities)
        self._errors = errors
        self.name = name
        self._items: list[T] = []
        self._stale = True
        self._refreshing: asyncio.Task[None] | None = None
        self._listeners: list[ItemsListener[T]] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def stale(self) -> bool:
        return self._stale

    async def start(self) -> Result[list[T], AppError]:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_commit)
        return await self.refresh()

    async def refresh(self) -> Result[list[T], AppError]:
        self._stale = False
        loaded = await self._loader()
        if isinstance(loaded, Err):
            logger.warning(
                "live.refresh.failed",
                extra={"query": self.name, "code": loaded.error.code},
            )
            if self._errors is not None:
                self._errors.report(loaded.error)
            return loaded
        self._items = loaded.value
        for listener in list(self._listeners):
            listener(self.items)
        return Ok(self.items)

    def subscribe(self, listener: ItemsListener[T]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def wait_fresh(self) -> None:
        while self._refreshing is not None and not self._refreshing.done():
            await asyncio.shield(self._refreshing)

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.wait_fresh()

    def _on_commit(self, changeset: ChangeSet) -> None:
        if not any(changeset.for_entity(entity) for entity in self._entities):
            return
        self._stale = True
        if self._refreshing is None or self._refreshing.done():
            self._refreshing = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._stale:
            await self.refresh()


class LiveTaskList(LiveQuery[Task]):
    """A smart list that stays current as tasks are committed."""

    def __init__(
        self,
        tasks: TaskRepository,
        task_filter: TaskFilter | str = TaskFilter.ALL,
        *,
        errors: ErrorChannel | None = None,
    ) -> None:
        selected = TaskFilter(task_filter)
        super().__init__(
            tasks.store,
            lambda: tasks.list_tasks(selected),
            entities=("tasks", "projects", "areas"),
            errors=errors,
            name=f"tasks:{selected.value}",
        )
        self.task_filter = selected

