"""Project model grouping tasks, optionally inside an area."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from doneday.core.time import NAIVE_DATETIME, utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)

DEFAULT_PROJECT_COLOR = "blue"
DEFAULT_PROJECT_ICON = "folder.fill"


class Project(SQLModel, table=True):
    """User-curated task list; owns no tasks, deleting it detaches them."""

    __tablename__ = "projects"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100, index=True)
    notes: str | None = Field(default=None, max_length=2000)
    color: str = Field(default=DEFAULT_PROJECT_COLOR)
    icon: str = Field(default=DEFAULT_PROJECT_ICON)
    is_completed: bool = Field(default=False, index=True)
    sort_order: int = Field(default=0)
    area_id: UUID | None = Field(
        default=None,
        foreign_key="areas.id",
        index=True,
        ondelete="SET NULL",
    )

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
