"""Explicit construction and wiring of every service for one process."""

from __future__ import annotations

from dataclasses import dataclass

from doneday.core.config import Settings
from doneday.core.logging import get_logger
from doneday.db.session import open_database
from doneday.db.store import EntityStore
from doneday.services.error_channel import ErrorChannel
from doneday.services.live import LiveTaskList
from doneday.services.notifications.facility import (
    InMemoryNotificationFacility,
    NotificationFacility,
)
from doneday.services.notifications.responses import NotificationResponseHandler
from doneday.services.notifications.synchronizer import NotificationSynchronizer
from doneday.services.repositories.areas import AreaRepository
from doneday.services.repositories.projects import ProjectRepository
from doneday.services.repositories.tags import TagRepository
from doneday.services.repositories.tasks import TaskFilter, TaskRepository

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Every long-lived service, built once at startup and closed at shutdown."""

    settings: Settings
    store: EntityStore
    errors: ErrorChannel
    tasks: TaskRepository
    projects: ProjectRepository
    areas: AreaRepository
    tags: TagRepository
    facility: NotificationFacility
    synchronizer: NotificationSynchronizer
    responses: NotificationResponseHandler

    @classmethod
    async def build(
        cls,
        settings: Settings,
        *,
        facility: NotificationFacility | None = None,
    ) -> ServiceContainer:
        """Open the store (or its in-memory fallback) and wire services around it."""
        errors = ErrorChannel()
        opened = await open_database(settings)
        if opened.error is not None:
            errors.report(opened.error)
        store = EntityStore(opened.engine, persisted=opened.persisted)
        tasks = TaskRepository(
            store,
            tz=settings.tzinfo,
            upcoming_days=settings.upcoming_days,
        )
        facility = facility if facility is not None else InMemoryNotificationFacility()
        synchronizer = NotificationSynchronizer(
            store,
            facility,
            errors,
            title=settings.notification_title,
            snooze_minutes=settings.snooze_minutes,
        )
        container = cls(
            settings=settings,
            store=store,
            errors=errors,
            tasks=tasks,
            projects=ProjectRepository(store),
            areas=AreaRepository(store),
            tags=TagRepository(store),
            facility=facility,
            synchronizer=synchronizer,
            responses=NotificationResponseHandler(tasks, synchronizer),
        )
        logger.info(
            "container.built",
            extra={"persisted": opened.persisted, "environment": settings.environment},
        )
        return container

    async def start(self) -> None:
        """Run the startup notification sync; failures are already reported."""
        await self.synchronizer.start()

    def live_tasks(self, task_filter: TaskFilter | str = TaskFilter.ALL) -> LiveTaskList:
        return LiveTaskList(self.tasks, task_filter, errors=self.errors)

    async def close(self) -> None:
        await self.synchronizer.aclose()
        await self.store.close()
        logger.info("container.closed")
