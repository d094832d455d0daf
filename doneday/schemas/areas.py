"""Schemas for area create/update/read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class AreaCreate(SQLModel):
    """Payload for creating an area."""

    name: str
    notes: str | None = None
    icon: str | None = None
    color: str | None = None


class AreaUpdate(SQLModel):
    """Partial area update."""

    name: str | None = None
    notes: str | None = None
    icon: str | None = None
    color: str | None = None


class AreaRead(SQLModel):
    id: UUID
    name: str
    notes: str | None
    icon: str | None
    color: str | None
    sort_order: int
    created_at: datetime
    updated_at: datetime
