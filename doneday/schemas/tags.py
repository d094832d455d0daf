"""Schemas for tag payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class TagCreate(SQLModel):
    name: str
    color: str | None = None


class TagUpdate(SQLModel):
    name: str | None = None
    color: str | None = None


class TagRead(SQLModel):
    id: UUID
    name: str
    color: str | None
    created_at: datetime
