"""Tag model for free-form task labels."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from doneday.core.time import NAIVE_DATETIME, utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Tag(SQLModel, table=True):
    """Named label that can be attached to many tasks."""

    __tablename__ = "tags"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=30, index=True, unique=True)
    color: str | None = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
