"""Tag repository. Names are unique case-insensitively."""

from __future__ import annotations

from typing import Final
from uuid import UUID

from sqlalchemy import func
from sqlmodel import col

from doneday.core.errors import (
    AppError,
    TagCreationFailed,
    TagDeletionFailed,
    TagNotFound,
    TagUpdateFailed,
)
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.db.store import StoreContext
from doneday.models import Tag, TaskTag
from doneday.schemas.tags import TagCreate, TagUpdate
from doneday.services import validation
from doneday.services.repositories.base import BaseRepository

logger = get_logger(__name__)

_BY_NAME: Final = (col(Tag.name).asc(),)
_DUPLICATE_REASON: Final = "A tag with this name already exists"


class TagRepository(BaseRepository[Tag]):
    model = Tag
    not_found = TagNotFound

    async def get_tag(self, tag_id: UUID) -> Result[Tag, AppError]:
        return await self.get(tag_id)

    async def create_tag(self, payload: TagCreate) -> Result[Tag, AppError]:
        name = validation.validate_tag_name(payload.name)
        if isinstance(name, Err):
            return name
        color = validation.validate_color(payload.color)
        if isinstance(color, Err):
            return color
        async with self.store.primary() as ctx:
            existing = await self._find_by_name(ctx, name.value)
            if isinstance(existing, Err):
                return existing
            if existing.value is not None:
                return Err(TagCreationFailed(_DUPLICATE_REASON))
            return await self._insert(ctx, name.value, color.value)

    async def find_or_create_tag(self, name: str) -> Result[Tag, AppError]:
        """Return the tag named `name` (ignoring case), creating it when missing."""
        checked = validation.validate_tag_name(name)
        if isinstance(checked, Err):
            return checked
        async with self.store.primary() as ctx:
            existing = await self._find_by_name(ctx, checked.value)
            if isinstance(existing, Err):
                return existing
            if existing.value is not None:
                return Ok(existing.value)
            return await self._insert(ctx, checked.value, None)

    async def update_tag(self, tag: Tag, payload: TagUpdate) -> Result[Tag, AppError]:
        updates = payload.model_dump(exclude_unset=True)
        if updates.get("name", "") is None:
            del updates["name"]
        if "name" in updates:
            name = validation.validate_tag_name(updates["name"])
            if isinstance(name, Err):
                return name
            updates["name"] = name.value
        if "color" in updates:
            color = validation.validate_color(updates["color"])
            if isinstance(color, Err):
                return color
            updates["color"] = color.value
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, tag)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            if "name" in updates:
                clash = await self._find_by_name(ctx, updates["name"])
                if isinstance(clash, Err):
                    return clash
                if clash.value is not None and clash.value.id != current.id:
                    return Err(TagUpdateFailed(_DUPLICATE_REASON))
            for key, value in updates.items():
                setattr(current, key, value)
            current.updated_at = self.now()
            return await self._save(ctx, current, failure=TagUpdateFailed)

    async def delete_tag(self, tag: Tag) -> Result[None, AppError]:
        """Delete `tag` and unlink it from every task."""
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, tag)
            if isinstance(attached, Err):
                return attached
            links = await ctx.fetch(TaskTag, col(TaskTag.tag_id) == attached.value.id)
            if isinstance(links, Err):
                return links
            for link in links.value:
                await ctx.delete(link)
            await ctx.delete(attached.value)
            committed = await self._commit(ctx, failure=TagDeletionFailed)
        if isinstance(committed, Ok):
            logger.info(
                "tag.deleted",
                extra={"tag_id": str(tag.id), "links": len(links.value)},
            )
        return committed

    async def all_tags(self) -> Result[list[Tag], AppError]:
        async with self.store.primary() as ctx:
            return await self._fetch(ctx, order_by=_BY_NAME)

    async def _find_by_name(self, ctx: StoreContext, name: str) -> Result[Tag | None, AppError]:
        return await ctx.fetch_one(Tag, func.lower(col(Tag.name)) == name.lower())

    async def _insert(
        self,
        ctx: StoreContext,
        name: str,
        color: str | None,
    ) -> Result[Tag, AppError]:
        now = self.now()
        tag = Tag(name=name, color=color, created_at=now, updated_at=now)
        ctx.insert(tag)
        saved = await self._save(ctx, tag, failure=TagCreationFailed)
        if isinstance(saved, Ok):
            logger.info("tag.created", extra={"tag_id": str(tag.id)})
        return saved
