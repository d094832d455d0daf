"""Notification facility boundary and an in-memory implementation.

The facility is the external scheduler that actually fires reminders. The core
only ever talks to it through `NotificationFacility`.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final, Literal, Protocol

from doneday.core.errors import NotificationPermissionDenied
from doneday.core.logging import get_logger

logger = get_logger(__name__)

TASK_REMINDER_CATEGORY: Final = "task_reminder"
COMPLETE_ACTION: Final = "complete"
SNOOZE_ACTION_PREFIX: Final = "snooze:"
OPEN_ACTION: Final = "open"


@dataclass(frozen=True)
class NotificationRequest:
    """One pending reminder; `identifier` is the task id as a string."""

    identifier: str
    title: str
    body: str
    fire_at: datetime
    subtitle: str | None = None
    category: str = TASK_REMINDER_CATEGORY
    actions: tuple[str, ...] = (COMPLETE_ACTION, f"{SNOOZE_ACTION_PREFIX}15")
    user_info: tuple[tuple[str, str], ...] = ()


class NotificationFacility(Protocol):
    """Operations the synchronizer needs from the platform scheduler.

    `add` replaces any pending request with the same identifier and raises
    `NotificationPermissionDenied` when permission has been withheld.
    """

    async def request_authorization(self) -> bool: ...

    async def pending_requests(self) -> list[NotificationRequest]: ...

    async def add(self, request: NotificationRequest) -> None: ...

    async def remove(self, identifiers: Collection[str]) -> None: ...


@dataclass(frozen=True)
class FacilityOperation:
    kind: Literal["add", "remove"]
    identifier: str


@dataclass
class InMemoryNotificationFacility:
    """Facility that keeps pending requests in a dict and records every operation."""

    granted: bool = True
    pending: dict[str, NotificationRequest] = field(default_factory=dict)
    operations: list[FacilityOperation] = field(default_factory=list)
    authorization_requests: int = 0

    async def request_authorization(self) -> bool:
        self.authorization_requests += 1
        return self.granted

    async def pending_requests(self) -> list[NotificationRequest]:
        return list(self.pending.values())

    async def add(self, request: NotificationRequest) -> None:
        if not self.granted:
            raise NotificationPermissionDenied
        self.pending[request.identifier] = request
        self.operations.append(FacilityOperation("add", request.identifier))

    async def remove(self, identifiers: Collection[str]) -> None:
        for identifier in identifiers:
            self.pending.pop(identifier, None)
            self.operations.append(FacilityOperation("remove", identifier))

    def deliver(self, identifier: str) -> NotificationRequest | None:
        """Simulate the platform firing a request: it leaves the pending set."""
        request = self.pending.pop(identifier, None)
        if request is not None:
            logger.debug("notifications.facility.delivered", extra={"identifier": identifier})
        return request

    def clear_operations(self) -> None:
        self.operations.clear()
