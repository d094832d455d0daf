"""Schemas for task create/update/read payloads.

Field rules (lengths, priority range) are enforced by the validation service,
not here, so that callers always get the typed validation error back.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from doneday.models.tasks import ReminderType

RUNTIME_ANNOTATION_TYPES = (datetime, UUID, ReminderType)


class TaskCreate(SQLModel):
    """Payload for creating a task."""

    title: str
    notes: str | None = None
    priority: int = 0
    due_date: datetime | None = None
    start_date: datetime | None = None
    project_id: UUID | None = None
    area_id: UUID | None = None
    reminder_enabled: bool = False
    reminder_type: ReminderType = ReminderType.EXACT
    reminder_time: datetime | None = None
    tag_ids: list[UUID] = Field(default_factory=list)


class TaskUpdate(SQLModel):
    """Partial update; only fields explicitly set are validated and applied."""

    title: str | None = None
    notes: str | None = None
    priority: int | None = None
    due_date: datetime | None = None
    start_date: datetime | None = None
    project_id: UUID | None = None
    area_id: UUID | None = None
    reminder_enabled: bool | None = None
    reminder_type: ReminderType | None = None
    reminder_time: datetime | None = None


class TaskTagsUpdate(SQLModel):
    """Replace the full tag set of a task."""

    tag_ids: list[UUID] = Field(default_factory=list)


class TaskRead(SQLModel):
    """Task payload returned to callers."""

    id: UUID
    title: str
    notes: str | None
    priority: int
    sort_order: int
    due_date: datetime | None
    start_date: datetime | None
    is_completed: bool
    completed_at: datetime | None
    is_deleted: bool
    reminder_enabled: bool
    reminder_type: ReminderType
    reminder_time: datetime | None
    reminder_offset_minutes: int
    project_id: UUID | None
    area_id: UUID | None
    created_at: datetime
    updated_at: datetime


class TaskSnoozePayload(SQLModel):
    """Snooze length; the configured default applies when omitted."""

    minutes: int | None = None
