"""Link table between tasks and tags."""

from __future__ import annotations

from uuid import UUID

from sqlmodel import Field, SQLModel


class TaskTag(SQLModel, table=True):
    """Many-to-many association row; removed with either side."""

    __tablename__ = "task_tags"  # pyright: ignore[reportAssignmentType]

    task_id: UUID = Field(foreign_key="tasks.id", primary_key=True, ondelete="CASCADE")
    tag_id: UUID = Field(foreign_key="tags.id", primary_key=True, ondelete="CASCADE")
