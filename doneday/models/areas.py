"""Area model: a long-lived sphere of responsibility holding projects and tasks."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from doneday.core.time import NAIVE_DATETIME, utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Area(SQLModel, table=True):
    """Top-level grouping for projects and loose tasks."""

    __tablename__ = "areas"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=50, index=True)
    notes: str | None = Field(default=None, max_length=2000)
    icon: str | None = None
    color: str | None = None
    sort_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
