"""Handlers for callbacks coming back from the notification facility."""

from __future__ import annotations

from uuid import UUID

from doneday.core.errors import AppError, InvalidData
from doneday.core.logging import get_logger
from doneday.core.result import Err, Result
from doneday.models import Task
from doneday.services.notifications.facility import (
    COMPLETE_ACTION,
    OPEN_ACTION,
    SNOOZE_ACTION_PREFIX,
)
from doneday.services.notifications.synchronizer import NotificationSynchronizer
from doneday.services.repositories.tasks import TaskRepository

logger = get_logger(__name__)


def parse_snooze_minutes(action: str) -> int | None:
    """Return N for a `snooze:N` action, else `None`."""
    if not action.startswith(SNOOZE_ACTION_PREFIX):
        return None
    raw = action.removeprefix(SNOOZE_ACTION_PREFIX)
    return int(raw) if raw.isdigit() else None


class NotificationResponseHandler:
    """Routes permission changes, deliveries and user actions to the core."""

    def __init__(self, tasks: TaskRepository, synchronizer: NotificationSynchronizer) -> None:
        self._tasks = tasks
        self._synchronizer = synchronizer

    def on_authorization_changed(self, granted: bool) -> None:
        logger.info("notifications.authorization_changed", extra={"granted": granted})
        self._synchronizer.authorization_changed(granted)

    def on_delivered(self, task_id: UUID) -> None:
        logger.info("notifications.delivered", extra={"task_id": str(task_id)})

    async def on_response(self, task_id: UUID, action: str) -> Result[Task, AppError]:
        """Apply a user action: `complete`, `snooze:N` or `open`.

        Unknown actions and missing tasks are logged and returned as errors
        without touching the store.
        """
        found = await self._tasks.get_task(task_id)
        if isinstance(found, Err):
            logger.warning(
                "notifications.response.task_missing",
                extra={"task_id": str(task_id), "action": action},
            )
            return found
        task = found.value
        if action == COMPLETE_ACTION:
            result = await self._tasks.mark_completed(task)
        elif action == OPEN_ACTION:
            return found
        elif (minutes := parse_snooze_minutes(action)) is not None:
            result = await self._tasks.snooze_task(task, minutes)
        else:
            logger.warning(
                "notifications.response.unknown_action",
                extra={"task_id": str(task_id), "action": action},
            )
            return Err(InvalidData())
        logger.info(
            "notifications.response.applied",
            extra={"task_id": str(task_id), "action": action, "ok": result.is_ok},
        )
        return result
