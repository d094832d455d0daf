"""Task model: the unit of work, with completion, soft-delete and reminder state."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from doneday.core.time import NAIVE_DATETIME, utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ReminderType(StrEnum):
    """How a reminder time is derived from the due date."""

    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    ONE_DAY = "1d"
    EXACT = "exact"


class Task(SQLModel, table=True):
    """Task record; Project and Area are weak back-references by id."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=200)
    notes: str | None = Field(default=None, max_length=2000)
    priority: int = Field(default=0, ge=0, le=3)
    sort_order: int = Field(default=0, index=True)

    due_date: datetime | None = Field(default=None, index=True, sa_type=NAIVE_DATETIME)
    start_date: datetime | None = Field(default=None, sa_type=NAIVE_DATETIME)

    is_completed: bool = Field(default=False, index=True)
    completed_at: datetime | None = Field(default=None, sa_type=NAIVE_DATETIME)
    is_deleted: bool = Field(default=False, index=True)

    reminder_enabled: bool = Field(default=False)
    reminder_type: str = Field(default=ReminderType.EXACT, max_length=8)
    reminder_time: datetime | None = Field(default=None, sa_type=NAIVE_DATETIME)
    reminder_offset_minutes: int = Field(default=0)

    project_id: UUID | None = Field(
        default=None,
        foreign_key="projects.id",
        index=True,
        ondelete="SET NULL",
    )
    area_id: UUID | None = Field(
        default=None,
        foreign_key="areas.id",
        index=True,
        ondelete="SET NULL",
    )

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
