"""Area repository."""

from __future__ import annotations

from typing import Final
from uuid import UUID

from sqlmodel import col

from doneday.core.errors import (
    AppError,
    AreaCreationFailed,
    AreaDeletionFailed,
    AreaNotFound,
    AreaUpdateFailed,
)
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.models import Area, Project, Task
from doneday.schemas.areas import AreaCreate, AreaUpdate
from doneday.services import validation
from doneday.services.repositories.base import BaseRepository

logger = get_logger(__name__)

_BY_NAME: Final = (col(Area.name).asc(),)


class AreaRepository(BaseRepository[Area]):
    model = Area
    not_found = AreaNotFound

    async def get_area(self, area_id: UUID) -> Result[Area, AppError]:
        return await self.get(area_id)

    async def create_area(self, payload: AreaCreate) -> Result[Area, AppError]:
        name = validation.validate_area_name(payload.name)
        if isinstance(name, Err):
            return name
        notes = validation.validate_area_notes(payload.notes)
        if isinstance(notes, Err):
            return notes
        color = validation.validate_color(payload.color)
        if isinstance(color, Err):
            return color
        now = self.now()
        async with self.store.primary() as ctx:
            sort_order = await self._next_sort_order(ctx)
            if isinstance(sort_order, Err):
                return sort_order
            area = Area(
                name=name.value,
                notes=notes.value,
                icon=payload.icon,
                color=color.value,
                sort_order=sort_order.value,
                created_at=now,
                updated_at=now,
            )
            ctx.insert(area)
            saved = await self._save(ctx, area, failure=AreaCreationFailed)
        if isinstance(saved, Ok):
            logger.info("area.created", extra={"area_id": str(area.id)})
        return saved

    async def update_area(self, area: Area, payload: AreaUpdate) -> Result[Area, AppError]:
        updates = payload.model_dump(exclude_unset=True)
        if updates.get("name", "") is None:
            del updates["name"]
        if "name" in updates:
            name = validation.validate_area_name(updates["name"])
            if isinstance(name, Err):
                return name
            updates["name"] = name.value
        if "notes" in updates:
            notes = validation.validate_area_notes(updates["notes"])
            if isinstance(notes, Err):
                return notes
            updates["notes"] = notes.value
        if "color" in updates:
            color = validation.validate_color(updates["color"])
            if isinstance(color, Err):
                return color
            updates["color"] = color.value
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, area)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            for key, value in updates.items():
                setattr(current, key, value)
            current.updated_at = self.now()
            return await self._save(ctx, current, failure=AreaUpdateFailed)

    async def delete_area(self, area: Area) -> Result[None, AppError]:
        """Delete `area`; its projects and tasks survive, detached."""
        now = self.now()
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, area)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            projects = await ctx.fetch(Project, col(Project.area_id) == current.id)
            if isinstance(projects, Err):
                return projects
            tasks = await ctx.fetch(Task, col(Task.area_id) == current.id)
            if isinstance(tasks, Err):
                return tasks
            for record in (*projects.value, *tasks.value):
                record.area_id = None
                record.updated_at = now
            await ctx.delete(current)
            committed = await self._commit(ctx, failure=AreaDeletionFailed)
        if isinstance(committed, Ok):
            logger.info(
                "area.deleted",
                extra={
                    "area_id": str(area.id),
                    "projects": len(projects.value),
                    "tasks": len(tasks.value),
                },
            )
        return committed

    async def all_areas(self) -> Result[list[Area], AppError]:
        async with self.store.primary() as ctx:
            return await self._fetch(ctx, order_by=_BY_NAME)
