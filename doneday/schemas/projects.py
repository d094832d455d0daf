"""Schemas for project create/update/read payloads and progress summaries."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlmodel import SQLModel

from doneday.models.projects import DEFAULT_PROJECT_COLOR, DEFAULT_PROJECT_ICON

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ProjectCompletionOption(StrEnum):
    """What happens to open tasks when a project is completed."""

    COMPLETE_ALL = "complete_all"
    COMPLETE_ACTIVE_ONLY = "complete_active_only"
    MOVE_INCOMPLETE_TO_INBOX = "move_incomplete_to_inbox"


class ProjectDeletionOption(StrEnum):
    """What happens to a project's tasks when the project is deleted."""

    MOVE_TO_INBOX = "move_to_inbox"
    MOVE_TO_PROJECT = "move_to_project"
    DELETE_TASKS = "delete_tasks"


class ProjectFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    WITH_OVERDUE_TASKS = "with_overdue_tasks"
    BY_AREA = "by_area"
    HIGH_PRIORITY = "high_priority"


class ProjectCreate(SQLModel):
    """Payload for creating a project."""

    name: str
    notes: str | None = None
    color: str = DEFAULT_PROJECT_COLOR
    icon: str = DEFAULT_PROJECT_ICON
    area_id: UUID | None = None


class ProjectUpdate(SQLModel):
    """Partial project update."""

    name: str | None = None
    notes: str | None = None
    color: str | None = None
    icon: str | None = None
    area_id: UUID | None = None


class ProjectCompletePayload(SQLModel):
    """Options for completing a project."""

    option: ProjectCompletionOption = ProjectCompletionOption.COMPLETE_ALL
    notes: str | None = None


class ProjectRead(SQLModel):
    """Project payload returned to callers."""

    id: UUID
    name: str
    notes: str | None
    color: str
    icon: str
    is_completed: bool
    sort_order: int
    area_id: UUID | None
    created_at: datetime
    updated_at: datetime


class ProjectProgressRead(SQLModel):
    """Task counters for one project."""

    total_tasks: int
    completed_tasks: int
    active_tasks: int
    overdue_tasks: int
    completion_percentage: float
    average_priority: float
