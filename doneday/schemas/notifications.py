"""Payloads for notification facility callbacks and sync reports."""

from __future__ import annotations

from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (UUID,)


class AuthorizationChanged(SQLModel):
    granted: bool


class NotificationDelivered(SQLModel):
    task_id: UUID


class NotificationResponse(SQLModel):
    """A user action taken on a delivered reminder."""

    task_id: UUID
    action: str = Field(
        description="`complete`, `open` or `snooze:<minutes>`.",
        examples=["complete", "snooze:15"],
    )


class SyncReportRead(SQLModel):
    scheduled: int
    cancelled: int
    unchanged: int
    dropped: int
    skipped: bool
