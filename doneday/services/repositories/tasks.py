"""Task repository: CRUD, completion, soft delete, tagging, reminders and smart lists."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Final
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlmodel import col, select

from doneday.core.errors import (
    AppError,
    TagNotFound,
    TaskCreationFailed,
    TaskDeletionFailed,
    TaskNotFound,
    TaskUpdateFailed,
)
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.core.time import day_window, to_naive_utc, utcnow
from doneday.db.store import EntityStore, StoreContext
from doneday.models import Area, Project, Tag, Task, TaskTag
from doneday.schemas.tasks import TaskCreate, TaskUpdate
from doneday.services import validation
from doneday.services.reminders import ReminderConfig, compute_reminder, snooze
from doneday.services.repositories.base import BaseRepository, Clock

logger = get_logger(__name__)

DEFAULT_UPCOMING_DAYS: Final = 7
REMINDER_FIELDS: Final = frozenset(
    {"reminder_enabled", "reminder_type", "reminder_time", "reminder_offset_minutes"},
)
# Fields whose change alters whether or how a task is scheduled for a reminder.
SCHEDULING_FIELDS: Final = REMINDER_FIELDS | {"is_completed", "is_deleted", "title", "project_id"}
_NULLABLE_UPDATE_FIELDS: Final = frozenset(
    {"notes", "due_date", "start_date", "project_id", "area_id", "reminder_time"},
)
_PLAIN_UPDATE_FIELDS: Final = (
    "title",
    "notes",
    "priority",
    "due_date",
    "start_date",
    "project_id",
    "area_id",
)

NOT_DELETED = col(Task.is_deleted).is_(False)
NOT_COMPLETED = col(Task.is_completed).is_(False)
DEFAULT_ORDER: Final = (col(Task.sort_order).asc(), col(Task.created_at).asc())


class TaskFilter(StrEnum):
    """Smart-list selector."""

    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    INBOX = "inbox"
    COMPLETED = "completed"


def _naive(value: datetime | None) -> datetime | None:
    return to_naive_utc(value) if value is not None else None


def apply_reminder(task: Task, config: ReminderConfig) -> None:
    task.reminder_enabled = config.enabled
    task.reminder_type = config.reminder_type.value
    task.reminder_time = config.reminder_time
    task.reminder_offset_minutes = config.offset_minutes


def apply_completion(task: Task, *, completed: bool, now: datetime) -> None:
    """Flip completion; `completed_at` is set exactly when the task is completed."""
    task.is_completed = completed
    task.completed_at = now if completed else None
    task.updated_at = now


def reminder_target_predicates(now: datetime | None = None) -> tuple[Any, ...]:
    """Predicates selecting tasks that should have a pending reminder.

    With `now`, reminders whose time is not in the future are excluded.
    """
    predicates: list[Any] = [
        col(Task.reminder_enabled).is_(True),
        NOT_COMPLETED,
        NOT_DELETED,
        col(Task.reminder_time).is_not(None),
    ]
    if now is not None:
        predicates.append(col(Task.reminder_time) > now)
    return tuple(predicates)


async def fetch_reminder_targets(
    ctx: StoreContext,
    *,
    now: datetime | None = None,
) -> Result[list[Task], AppError]:
    return await ctx.fetch(
        Task,
        *reminder_target_predicates(now),
        order_by=(col(Task.reminder_time).asc(),),
    )


def _validate_updates(updates: dict[str, Any]) -> Result[dict[str, Any], AppError]:
    """Validate supplied fields in title, notes, due date, priority order."""
    normalized = dict(updates)
    if "title" in updates:
        title = validation.validate_task_title(updates["title"])
        if isinstance(title, Err):
            return title
        normalized["title"] = title.value
    if "notes" in updates:
        notes = validation.validate_task_notes(updates["notes"])
        if isinstance(notes, Err):
            return notes
        normalized["notes"] = notes.value
    if "due_date" in updates:
        due_date = validation.validate_due_date(_naive(updates["due_date"]))
        if isinstance(due_date, Err):
            return due_date
        normalized["due_date"] = due_date.value
    if "priority" in updates:
        priority = validation.validate_priority(updates["priority"])
        if isinstance(priority, Err):
            return priority
    for key in ("start_date", "reminder_time"):
        if key in updates:
            normalized[key] = _naive(updates[key])
    return Ok(normalized)


class TaskRepository(BaseRepository[Task]):
    """Typed access to tasks; every mutation commits and returns a `Result`."""

    model = Task
    not_found = TaskNotFound

    def __init__(
        self,
        store: EntityStore,
        *,
        tz: ZoneInfo | None = None,
        upcoming_days: int = DEFAULT_UPCOMING_DAYS,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(store, clock=clock)
        self.tz = tz or ZoneInfo("UTC")
        self.upcoming_days = upcoming_days

    async def get_task(self, task_id: UUID) -> Result[Task, AppError]:
        return await self.get(task_id)

    async def create_task(self, payload: TaskCreate) -> Result[Task, AppError]:
        checked = validation.validate_task(
            title=payload.title,
            notes=payload.notes,
            due_date=_naive(payload.due_date),
            priority=payload.priority,
        )
        if isinstance(checked, Err):
            return checked
        valid = checked.value
        now = self.now()
        reminder = compute_reminder(
            due_date=valid.due_date,
            reminder_type=payload.reminder_type,
            reminder_time=_naive(payload.reminder_time),
            enabled=payload.reminder_enabled,
            now=now,
        )
        async with self.store.primary() as ctx:
            references = await self._check_references(
                ctx,
                project_id=payload.project_id,
                area_id=payload.area_id,
                failure=TaskCreationFailed,
            )
            if isinstance(references, Err):
                return references
            tags = await self._load_tags(ctx, payload.tag_ids)
            if isinstance(tags, Err):
                return tags
            sort_order = await self._next_sort_order(ctx, NOT_DELETED)
            if isinstance(sort_order, Err):
                return sort_order
            task = Task(
                title=valid.title,
                notes=valid.notes,
                priority=valid.priority,
                due_date=valid.due_date,
                start_date=_naive(payload.start_date),
                sort_order=sort_order.value,
                project_id=payload.project_id,
                area_id=payload.area_id,
                created_at=now,
                updated_at=now,
            )
            apply_reminder(task, reminder)
            ctx.insert(task)
            ctx.insert_all(TaskTag(task_id=task.id, tag_id=tag.id) for tag in tags.value)
            saved = await self._save(ctx, task, failure=TaskCreationFailed)
        if isinstance(saved, Ok):
            logger.info(
                "task.created",
                extra={"task_id": str(task.id), "sort_order": task.sort_order},
            )
        return saved

    async def update_task(self, task: Task, payload: TaskUpdate) -> Result[Task, AppError]:
        """Apply only the fields present in `payload`; `updated_at` always moves."""
        supplied = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_UPDATE_FIELDS
        }
        checked = _validate_updates(supplied)
        if isinstance(checked, Err):
            return checked
        updates = checked.value
        now = self.now()
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            references = await self._check_references(
                ctx,
                project_id=updates.get("project_id"),
                area_id=updates.get("area_id"),
                failure=TaskUpdateFailed,
            )
            if isinstance(references, Err):
                return references
            for key in _PLAIN_UPDATE_FIELDS:
                if key in updates:
                    setattr(current, key, updates[key])
            if "due_date" in updates or REMINDER_FIELDS.intersection(updates):
                apply_reminder(
                    current,
                    compute_reminder(
                        due_date=current.due_date,
                        reminder_type=updates.get("reminder_type", current.reminder_type),
                        reminder_time=updates.get("reminder_time", current.reminder_time),
                        enabled=updates.get("reminder_enabled", current.reminder_enabled),
                        now=now,
                    ),
                )
            current.updated_at = now
            return await self._save(ctx, current, failure=TaskUpdateFailed)

    async def mark_completed(self, task: Task) -> Result[Task, AppError]:
        return await self._set_completed(task, lambda _: True)

    async def mark_incomplete(self, task: Task) -> Result[Task, AppError]:
        return await self._set_completed(task, lambda _: False)

    async def toggle_completion(self, task: Task) -> Result[Task, AppError]:
        return await self._set_completed(task, lambda current: not current)

    async def _set_completed(
        self,
        task: Task,
        decide: Callable[[bool], bool],
    ) -> Result[Task, AppError]:
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            completed = decide(current.is_completed)
            if current.is_completed == completed:
                return Ok(current)
            apply_completion(current, completed=completed, now=self.now())
            saved = await self._save(ctx, current, failure=TaskUpdateFailed)
        if isinstance(saved, Ok):
            logger.info(
                "task.completion.changed",
                extra={"task_id": str(current.id), "completed": completed},
            )
        return saved

    async def soft_delete(self, task: Task) -> Result[Task, AppError]:
        """Move a task to the trash; it stays in storage until restored or purged."""
        return await self._set_deleted(task, deleted=True)

    async def restore(self, task: Task) -> Result[Task, AppError]:
        return await self._set_deleted(task, deleted=False)

    async def _set_deleted(self, task: Task, *, deleted: bool) -> Result[Task, AppError]:
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            current.is_deleted = deleted
            current.updated_at = self.now()
            return await self._save(ctx, current, failure=TaskUpdateFailed)

    async def delete_task(self, task: Task) -> Result[None, AppError]:
        """Remove a task and its tag links permanently."""
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            links = await ctx.fetch(TaskTag, col(TaskTag.task_id) == attached.value.id)
            if isinstance(links, Err):
                return links
            for link in links.value:
                await ctx.delete(link)
            await ctx.delete(attached.value)
            committed = await self._commit(ctx, failure=TaskDeletionFailed)
        if isinstance(committed, Ok):
            logger.info("task.purged", extra={"task_id": str(task.id)})
        return committed

    async def snooze_task(self, task: Task, minutes: int) -> Result[Task, AppError]:
        """Re-arm the reminder as an exact time `minutes` from now."""
        checked = validation.validate_snooze_minutes(minutes)
        if isinstance(checked, Err):
            return checked
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            now = self.now()
            apply_reminder(current, snooze(now=now, minutes=checked.value))
            current.updated_at = now
            return await self._save(ctx, current, failure=TaskUpdateFailed)

    # --- Tags ---

    async def set_tags(self, task: Task, tag_ids: Iterable[UUID]) -> Result[list[Tag], AppError]:
        """Replace the tag set of `task` with exactly `tag_ids`."""
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, task)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            tags = await self._load_tags(ctx, tag_ids)
            if isinstance(tags, Err):
                return tags
            links = await ctx.fetch(TaskTag, col(TaskTag.task_id) == current.id)
            if isinstance(links, Err):
                return links
            wanted = {tag.id for tag in tags.value}
            existing = {link.tag_id for link in links.value}
            for link in links.value:
                if link.tag_id not in wanted:
                    await ctx.delete(link)
            ctx.insert_all(
                TaskTag(task_id=current.id, tag_id=tag_id) for tag_id in wanted - existing
            )
            if wanted != existing:
                current.updated_at = self.now()
            committed = await self._commit(ctx, failure=TaskUpdateFailed)
        return committed.map(lambda _: sorted(tags.value, key=lambda tag: tag.name))

    async def add_tag(self, task: Task, tag: Tag) -> Result[list[Tag], AppError]:
        current = await self.tags_for_task(task)
        if isinstance(current, Err):
            return current
        return await self.set_tags(task, [*(existing.id for existing in current.value), tag.id])

    async def remove_tag(self, task: Task, tag: Tag) -> Result[list[Tag], AppError]:
        current = await self.tags_for_task(task)
        if isinstance(current, Err):
            return current
        return await self.set_tags(
            task,
            [existing.id for existing in current.value if existing.id != tag.id],
        )

    async def tags_for_task(self, task: Task) -> Result[list[Tag], AppError]:
        linked = select(TaskTag.tag_id).where(col(TaskTag.task_id) == task.id)
        async with self.store.primary() as ctx:
            return await ctx.fetch(Tag, col(Tag.id).in_(linked), order_by=(col(Tag.name).asc(),))

    # --- Smart lists ---

    async def active_tasks(self) -> Result[list[Task], AppError]:
        return await self._query(NOT_DELETED)

    async def today_tasks(self, *, now: datetime | None = None) -> Result[list[Task], AppError]:
        start, end = day_window(_naive(now) or self.now(), self.tz)
        return await self._query(
            col(Task.due_date) >= start,
            col(Task.due_date) < end,
            NOT_COMPLETED,
            NOT_DELETED,
        )

    async def upcoming_tasks(
        self,
        *,
        days: int | None = None,
        now: datetime | None = None,
    ) -> Result[list[Task], AppError]:
        """Open tasks due within `(now, now + days]`."""
        start = _naive(now) or self.now()
        end = start + timedelta(days=days if days is not None else self.upcoming_days)
        return await self._query(
            col(Task.due_date) > start,
            col(Task.due_date) <= end,
            NOT_COMPLETED,
            NOT_DELETED,
        )

    async def inbox_tasks(self) -> Result[list[Task], AppError]:
        return await self._query(
            col(Task.project_id).is_(None),
            col(Task.area_id).is_(None),
            NOT_COMPLETED,
            NOT_DELETED,
        )

    async def completed_tasks(self) -> Result[list[Task], AppError]:
        return await self._query(
            col(Task.is_completed).is_(True),
            NOT_DELETED,
            order_by=(col(Task.completed_at).desc(), col(Task.created_at).desc()),
        )

    async def list_tasks(
        self,
        task_filter: TaskFilter | str = TaskFilter.ALL,
        *,
        days: int | None = None,
        now: datetime | None = None,
    ) -> Result[list[Task], AppError]:
        selected = TaskFilter(task_filter)
        if selected is TaskFilter.TODAY:
            return await self.today_tasks(now=now)
        if selected is TaskFilter.UPCOMING:
            return await self.upcoming_tasks(days=days, now=now)
        if selected is TaskFilter.INBOX:
            return await self.inbox_tasks()
        if selected is TaskFilter.COMPLETED:
            return await self.completed_tasks()
        return await self.active_tasks()

    async def project_tasks(
        self,
        project_id: UUID,
        *,
        include_completed: bool = False,
    ) -> Result[list[Task], AppError]:
        predicates: list[Any] = [col(Task.project_id) == project_id, NOT_DELETED]
        if not include_completed:
            predicates.append(NOT_COMPLETED)
        return await self._query(*predicates)

    async def area_tasks(self, area_id: UUID) -> Result[list[Task], AppError]:
        return await self._query(col(Task.area_id) == area_id, NOT_DELETED)

    async def deleted_tasks(self) -> Result[list[Task], AppError]:
        return await self._query(
            col(Task.is_deleted).is_(True),
            order_by=(col(Task.updated_at).desc(),),
        )

    async def tasks_with_tag(self, tag_id: UUID) -> Result[list[Task], AppError]:
        tagged = select(TaskTag.task_id).where(col(TaskTag.tag_id) == tag_id)
        return await self._query(col(Task.id).in_(tagged), NOT_DELETED)

    async def reminder_targets(
        self,
        *,
        now: datetime | None = None,
    ) -> Result[list[Task], AppError]:
        async with self.store.primary() as ctx:
            return await fetch_reminder_targets(ctx, now=now)

    async def _query(
        self,
        *predicates: Any,
        order_by: tuple[Any, ...] = DEFAULT_ORDER,
    ) -> Result[list[Task], AppError]:
        async with self.store.primary() as ctx:
            return await self._fetch(ctx, *predicates, order_by=order_by)

    async def _check_references(
        self,
        ctx: StoreContext,
        *,
        project_id: UUID | None,
        area_id: UUID | None,
        failure: Callable[[str], AppError],
    ) -> Result[None, AppError]:
        for model, record_id, label in ((Project, project_id, "Project"), (Area, area_id, "Area")):
            if record_id is None:
                continue
            found = await self._exists(ctx, model, record_id)
            if isinstance(found, Err):
                return found
            if not found.value:
                return Err(failure(f"{label} does not exist"))
        return Ok(None)

    async def _load_tags(
        self,
        ctx: StoreContext,
        tag_ids: Iterable[UUID],
    ) -> Result[list[Tag], AppError]:
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return Ok([])
        tags = await ctx.fetch(Tag, col(Tag.id).in_(wanted))
        if isinstance(tags, Err):
            return tags
        if len(tags.value) != len(wanted):
            return Err(TagNotFound())
        return tags
