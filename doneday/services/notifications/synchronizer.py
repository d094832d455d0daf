"""Reconcile pending reminders in the notification facility with the task store.

A run reads the target set from a secondary context, cancels every pending
request that is no longer wanted and adds every wanted request the facility
does not already hold verbatim. Runs are serialised; triggers that arrive
while a run is in flight coalesce into exactly one follow-up run. While
permission is denied a run only cancels.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Final
from uuid import UUID

from sqlmodel import col

from doneday.core.errors import AppError, NotificationPermissionDenied
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.core.time import utcnow
from doneday.db.store import ChangeSet, EntityStore, RecordChange
from doneday.models import Project, Task
from doneday.services.error_channel import ErrorChannel
from doneday.services.notifications.facility import (
    COMPLETE_ACTION,
    SNOOZE_ACTION_PREFIX,
    NotificationFacility,
    NotificationRequest,
)
from doneday.services.repositories.tasks import (
    REMINDER_FIELDS,
    SCHEDULING_FIELDS,
    fetch_reminder_targets,
)

logger = get_logger(__name__)

DEFAULT_TITLE: Final = "Task reminder"
DEFAULT_SNOOZE_MINUTES: Final = 15
TASK_ENTITY: Final = "tasks"
# A change to any of these may remove a task from the target set.
_REVOKING_FIELDS: Final = frozenset(
    {"reminder_enabled", "reminder_time", "is_completed", "is_deleted"},
)


def is_reminder_action(change: RecordChange) -> bool:
    """Whether a task change is an explicit user action on its reminder."""
    if change.operation == "insert":
        return change.value("reminder_enabled") is True
    if change.operation == "update":
        return bool(change.fields & REMINDER_FIELDS)
    return False


@dataclass(frozen=True)
class SyncReport:
    """Outcome of one reconciliation run."""

    scheduled: int = 0
    cancelled: int = 0
    unchanged: int = 0
    dropped: int = 0
    skipped: bool = False

    @property
    def operations(self) -> int:
        return self.scheduled + self.cancelled


class NotificationSynchronizer:
    """Keeps the facility's pending requests equal to the reminder target set."""

    def __init__(
        self,
        store: EntityStore,
        facility: NotificationFacility,
        errors: ErrorChannel,
        *,
        title: str = DEFAULT_TITLE,
        snooze_minutes: int = DEFAULT_SNOOZE_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._facility = facility
        self._errors = errors
        self._title = title
        self._snooze_minutes = snooze_minutes
        self._clock = clock
        self._lock = asyncio.Lock()
        self._dirty = False
        self._background: asyncio.Task[None] | None = None
        self._revoked: set[str] = set()
        self._degraded = False
        self._closed = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def degraded(self) -> bool:
        """True while notification permission is denied."""
        return self._degraded

    @property
    def is_running(self) -> bool:
        return self._background is not None and not self._background.done()

    async def start(self) -> Result[SyncReport, AppError]:
        """Subscribe to commits, ask for permission and run the initial sync."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self.on_commit)
        granted = await self._facility.request_authorization()
        logger.info("notifications.authorization", extra={"granted": granted})
        if not granted:
            error = NotificationPermissionDenied()
            self.enter_degraded(error)
            # Stale requests from an earlier session are still cancelled.
            cleanup = await self.sync()
            if isinstance(cleanup, Err):
                logger.warning(
                    "notifications.sync.failed",
                    extra={"code": cleanup.error.code},
                )
            return Err(error)
        return await self.sync()

    async def sync(self) -> Result[SyncReport, AppError]:
        """Run one reconciliation now, waiting for any run already in flight."""
        async with self._lock:
            return await self._reconcile()

    def request_sync(self) -> None:
        """Schedule a background run without blocking the caller."""
        if self._closed:
            return
        self._dirty = True
        if self.is_running:
            return
        self._background = asyncio.get_running_loop().create_task(
            self._drain(),
            name="notifications-sync",
        )

    async def wait_idle(self) -> None:
        """Wait until no background run is pending."""
        while self.is_running:
            await asyncio.shield(self._background)  # type: ignore[arg-type]

    def on_commit(self, changeset: ChangeSet) -> None:
        """Commit listener: mark revoked ids and trigger a run when tasks change."""
        if not changeset.touches(TASK_ENTITY, SCHEDULING_FIELDS):
            return
        for change in changeset.for_entity(TASK_ENTITY):
            if change.operation == "delete" or (
                change.operation == "update" and change.fields & _REVOKING_FIELDS
            ):
                self._revoked.add(str(change.record_id))
        if self._degraded:
            if not any(map(is_reminder_action, changeset.for_entity(TASK_ENTITY))):
                logger.debug(
                    "notifications.sync.skip_degraded",
                    extra={"origin": changeset.origin},
                )
                return
            # Editing a reminder is an explicit request to try again.
            self._leave_degraded("reminder_edited")
        self.request_sync()

    def enter_degraded(self, error: NotificationPermissionDenied) -> None:
        if self._degraded:
            return
        self._degraded = True
        logger.warning("notifications.degraded", extra={"reason": "permission_denied"})
        self._errors.report(error)

    def authorization_changed(self, granted: bool) -> None:
        """Facility callback: a grant leaves degraded mode and re-syncs."""
        if not granted:
            self.enter_degraded(NotificationPermissionDenied())
            return
        if self._degraded:
            self._leave_degraded("permission_granted")
        self.request_sync()

    async def aclose(self) -> None:
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.wait_idle()

    def build_request(self, task: Task, project_name: str | None = None) -> NotificationRequest:
        task_id = str(task.id)
        return NotificationRequest(
            identifier=task_id,
            title=self._title,
            body=task.title,
            subtitle=project_name,
            fire_at=task.reminder_time,  # type: ignore[arg-type]
            actions=(COMPLETE_ACTION, f"{SNOOZE_ACTION_PREFIX}{self._snooze_minutes}"),
            user_info=(("task_id", task_id), ("task_title", task.title)),
        )

    def _leave_degraded(self, reason: str) -> None:
        self._degraded = False
        logger.info("notifications.recovered", extra={"reason": reason})

    async def _drain(self) -> None:
        while self._dirty and not self._closed:
            self._dirty = False
            try:
                result = await self.sync()
            except Exception:
                logger.exception("notifications.sync.crashed")
                return
            if isinstance(result, Err):
                logger.warning(
                    "notifications.sync.failed",
                    extra={"code": result.error.code},
                )

    async def _reconcile(self) -> Result[SyncReport, AppError]:
        # Revocations seen before this point are reflected in the read below.
        self._revoked.clear()
        desired = await self._desired_requests()
        if isinstance(desired, Err):
            return desired
        wanted = desired.value
        pending = {
            request.identifier: request for request in await self._facility.pending_requests()
        }

        stale = [identifier for identifier in pending if identifier not in wanted]
        if stale:
            await self._facility.remove(stale)
        if self._degraded:
            # Removing requests needs no permission; adding waits for recovery.
            logger.debug("notifications.sync.skip_degraded", extra={"cancelled": len(stale)})
            return Ok(SyncReport(cancelled=len(stale), skipped=True))

        scheduled = unchanged = dropped = 0
        for identifier, request in wanted.items():
            if pending.get(identifier) == request:
                unchanged += 1
                continue
            if identifier in self._revoked:
                dropped += 1
                continue
            try:
                await self._facility.add(request)
            except NotificationPermissionDenied as exc:
                self.enter_degraded(exc)
                return Err(exc)
            scheduled += 1

        report = SyncReport(
            scheduled=scheduled,
            cancelled=len(stale),
            unchanged=unchanged,
            dropped=dropped,
        )
        logger.info(
            "notifications.sync.complete",
            extra={
                "scheduled": report.scheduled,
                "cancelled": report.cancelled,
                "unchanged": report.unchanged,
                "dropped": report.dropped,
            },
        )
        return Ok(report)

    async def _desired_requests(self) -> Result[dict[str, NotificationRequest], AppError]:
        async with self._store.secondary("notifications") as ctx:
            targets = await fetch_reminder_targets(ctx, now=self._clock())
            if isinstance(targets, Err):
                return targets
            project_ids = {task.project_id for task in targets.value if task.project_id}
            names: dict[UUID, str] = {}
            if project_ids:
                projects = await ctx.fetch(Project, col(Project.id).in_(project_ids))
                if isinstance(projects, Err):
                    return projects
                names = {project.id: project.name for project in projects.value}
        requests = {}
        for task in targets.value:
            project_name = names.get(task.project_id) if task.project_id else None
            requests[str(task.id)] = self.build_request(task, project_name)
        return Ok(requests)
