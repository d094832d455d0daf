"""Project repository: CRUD, completion and deletion options, search and progress."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import col, select

from doneday.core.errors import (
    AppError,
    ProjectCreationFailed,
    ProjectDeletionFailed,
    ProjectNotFound,
    ProjectUpdateFailed,
    ValidationFailed,
)
from doneday.core.logging import get_logger
from doneday.core.result import Err, Ok, Result
from doneday.db.store import StoreContext
from doneday.models import Area, Project, Task
from doneday.schemas.projects import (
    ProjectCompletionOption,
    ProjectCreate,
    ProjectDeletionOption,
    ProjectFilter,
    ProjectUpdate,
)
from doneday.services import validation
from doneday.services.repositories.base import BaseRepository
from doneday.services.repositories.tasks import NOT_COMPLETED, NOT_DELETED, apply_completion

logger = get_logger(__name__)

HIGH_PRIORITY_LIMIT: Final = 10
COPY_SUFFIX: Final = " Copy"
_ORDER: Final = (col(Project.sort_order).asc(), col(Project.created_at).asc())
_BY_NAME: Final = (col(Project.name).asc(),)


@dataclass(frozen=True)
class ProjectProgress:
    """Task counters over a project's non-deleted tasks."""

    total_tasks: int
    completed_tasks: int
    active_tasks: int
    overdue_tasks: int
    completion_percentage: float
    average_priority: float

    @classmethod
    def from_tasks(cls, tasks: Sequence[Task], *, now: datetime) -> ProjectProgress:
        total = len(tasks)
        completed = sum(1 for task in tasks if task.is_completed)
        overdue = sum(
            1
            for task in tasks
            if not task.is_completed and task.due_date is not None and task.due_date < now
        )
        return cls(
            total_tasks=total,
            completed_tasks=completed,
            active_tasks=total - completed,
            overdue_tasks=overdue,
            completion_percentage=completed / total if total else 0.0,
            average_priority=sum(task.priority for task in tasks) / total if total else 0.0,
        )


def _append_completion_note(existing: str | None, note: str) -> str:
    entry = f"Completed: {note}"
    return f"{existing}\n\n{entry}" if existing else entry


class ProjectRepository(BaseRepository[Project]):
    """Projects own no tasks: removing one detaches, moves or trashes its tasks."""

    model = Project
    not_found = ProjectNotFound

    async def get_project(self, project_id: UUID) -> Result[Project, AppError]:
        return await self.get(project_id)

    async def create_project(self, payload: ProjectCreate) -> Result[Project, AppError]:
        name = validation.validate_project_name(payload.name)
        if isinstance(name, Err):
            return name
        notes = validation.validate_project_notes(payload.notes)
        if isinstance(notes, Err):
            return notes
        color = validation.validate_color(payload.color)
        if isinstance(color, Err):
            return color
        now = self.now()
        async with self.store.primary() as ctx:
            area = await self._check_area(ctx, payload.area_id, failure=ProjectCreationFailed)
            if isinstance(area, Err):
                return area
            sort_order = await self._next_sort_order(ctx)
            if isinstance(sort_order, Err):
                return sort_order
            project = Project(
                name=name.value,
                notes=notes.value,
                color=color.value or payload.color,
                icon=payload.icon,
                area_id=payload.area_id,
                sort_order=sort_order.value,
                created_at=now,
                updated_at=now,
            )
            ctx.insert(project)
            saved = await self._save(ctx, project, failure=ProjectCreationFailed)
        if isinstance(saved, Ok):
            logger.info("project.created", extra={"project_id": str(project.id)})
        return saved

    async def update_project(
        self,
        project: Project,
        payload: ProjectUpdate,
    ) -> Result[Project, AppError]:
        updates = payload.model_dump(exclude_unset=True)
        for key in ("name", "color", "icon"):
            if updates.get(key, "") is None:
                del updates[key]
        if "name" in updates:
            name = validation.validate_project_name(updates["name"])
            if isinstance(name, Err):
                return name
            updates["name"] = name.value
        if "notes" in updates:
            notes = validation.validate_project_notes(updates["notes"])
            if isinstance(notes, Err):
                return notes
            updates["notes"] = notes.value
        if "color" in updates:
            color = validation.validate_color(updates["color"])
            if isinstance(color, Err):
                return color
            if color.value is None:
                del updates["color"]
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, project)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            area = await self._check_area(ctx, updates.get("area_id"), failure=ProjectUpdateFailed)
            if isinstance(area, Err):
                return area
            for key, value in updates.items():
                setattr(current, key, value)
            current.updated_at = self.now()
            return await self._save(ctx, current, failure=ProjectUpdateFailed)

    async def delete_project(
        self,
        project: Project,
        option: ProjectDeletionOption | str = ProjectDeletionOption.MOVE_TO_INBOX,
        *,
        target_id: UUID | None = None,
    ) -> Result[None, AppError]:
        """Delete `project` and re-home its tasks according to `option`.

        `delete_tasks` moves the tasks to the trash rather than purging them.
        """
        selected = ProjectDeletionOption(option)
        if selected is ProjectDeletionOption.MOVE_TO_PROJECT and (
            target_id is None or target_id == project.id
        ):
            return Err(ProjectDeletionFailed("A different target project is required"))
        now = self.now()
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, project)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            if selected is ProjectDeletionOption.MOVE_TO_PROJECT:
                target = await self._exists(ctx, Project, target_id)  # type: ignore[arg-type]
                if isinstance(target, Err):
                    return target
                if not target.value:
                    return Err(ProjectDeletionFailed("Target project does not exist"))
            tasks = await ctx.fetch(Task, col(Task.project_id) == current.id)
            if isinstance(tasks, Err):
                return tasks
            for task in tasks.value:
                if selected is ProjectDeletionOption.MOVE_TO_PROJECT:
                    task.project_id = target_id
                else:
                    task.project_id = None
                    if selected is ProjectDeletionOption.DELETE_TASKS:
                        task.is_deleted = True
                task.updated_at = now
            await ctx.delete(current)
            committed = await self._commit(ctx, failure=ProjectDeletionFailed)
        if isinstance(committed, Ok):
            logger.info(
                "project.deleted",
                extra={
                    "project_id": str(project.id),
                    "option": selected.value,
                    "tasks": len(tasks.value),
                },
            )
        return committed

    async def complete_project(
        self,
        project: Project,
        option: ProjectCompletionOption | str = ProjectCompletionOption.COMPLETE_ALL,
        *,
        notes: str | None = None,
    ) -> Result[Project, AppError]:
        """Mark `project` completed, settling its open tasks per `option`.

        `complete_active_only` leaves tasks whose start date is still in the
        future open inside the project.
        """
        selected = ProjectCompletionOption(option)
        note = validation.validate_project_notes(notes)
        if isinstance(note, Err):
            return note
        now = self.now()
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, project)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            if note.value is not None:
                combined = validation.validate_project_notes(
                    _append_completion_note(current.notes, note.value),
                )
                if isinstance(combined, Err):
                    return combined
                current.notes = combined.value
            open_tasks = await ctx.fetch(
                Task,
                col(Task.project_id) == current.id,
                NOT_COMPLETED,
                NOT_DELETED,
            )
            if isinstance(open_tasks, Err):
                return open_tasks
            for task in open_tasks.value:
                if selected is ProjectCompletionOption.MOVE_INCOMPLETE_TO_INBOX:
                    task.project_id = None
                    task.updated_at = now
                elif selected is ProjectCompletionOption.COMPLETE_ALL or (
                    task.start_date is None or task.start_date <= now
                ):
                    apply_completion(task, completed=True, now=now)
            current.is_completed = True
            current.updated_at = now
            saved = await self._save(ctx, current, failure=ProjectUpdateFailed)
        if isinstance(saved, Ok):
            logger.info(
                "project.completed",
                extra={"project_id": str(current.id), "option": selected.value},
            )
        return saved

    async def archive_project(self, project: Project) -> Result[Project, AppError]:
        """Archive without touching tasks."""
        async with self.store.primary() as ctx:
            attached = await self._attach(ctx, project)
            if isinstance(attached, Err):
                return attached
            current = attached.value
            current.is_completed = True
            current.updated_at = self.now()
            return await self._save(ctx, current, failure=ProjectUpdateFailed)

    async def duplicate_project(self, project: Project) -> Result[Project, AppError]:
        return await self.create_project(
            ProjectCreate(
                name=project.name + COPY_SUFFIX,
                notes=project.notes,
                color=project.color,
                icon=project.icon,
                area_id=project.area_id,
            ),
        )

    # --- Queries ---

    async def all_projects(self) -> Result[list[Project], AppError]:
        return await self._query(order_by=_ORDER)

    async def active_projects(self) -> Result[list[Project], AppError]:
        return await self._query(col(Project.is_completed).is_(False), order_by=_BY_NAME)

    async def completed_projects(self) -> Result[list[Project], AppError]:
        return await self._query(
            col(Project.is_completed).is_(True),
            order_by=(col(Project.updated_at).desc(),),
        )

    async def projects_in_area(self, area_id: UUID) -> Result[list[Project], AppError]:
        return await self._query(col(Project.area_id) == area_id, order_by=_BY_NAME)

    async def search_projects(self, text: str) -> Result[list[Project], AppError]:
        """Case-insensitive match on project name, notes or area name."""
        needle = text.strip().lower()
        if not needle:
            return await self.all_projects()
        matching_areas = select(Area.id).where(
            func.lower(col(Area.name)).contains(needle, autoescape=True),
        )
        return await self._query(
            or_(
                func.lower(col(Project.name)).contains(needle, autoescape=True),
                func.lower(col(Project.notes)).contains(needle, autoescape=True),
                col(Project.area_id).in_(matching_areas),
            ),
            order_by=_ORDER,
        )

    async def filter_projects(
        self,
        project_filter: ProjectFilter | str = ProjectFilter.ALL,
        *,
        area_id: UUID | None = None,
        now: datetime | None = None,
    ) -> Result[list[Project], AppError]:
        selected = ProjectFilter(project_filter)
        if selected is ProjectFilter.ACTIVE:
            return await self.active_projects()
        if selected is ProjectFilter.COMPLETED:
            return await self.completed_projects()
        if selected is ProjectFilter.BY_AREA:
            if area_id is None:
                return Err(ValidationFailed("area_id", "An area is required for this filter"))
            return await self.projects_in_area(area_id)
        if selected is ProjectFilter.WITH_OVERDUE_TASKS:
            overdue = select(Task.project_id).where(
                col(Task.due_date) < (now or self.now()),
                NOT_COMPLETED,
                NOT_DELETED,
            )
            return await self._query(col(Project.id).in_(overdue), order_by=_ORDER)
        if selected is ProjectFilter.HIGH_PRIORITY:
            return await self._highest_priority()
        return await self.all_projects()

    async def progress(
        self,
        project: Project,
        *,
        now: datetime | None = None,
    ) -> Result[ProjectProgress, AppError]:
        async with self.store.primary() as ctx:
            tasks = await ctx.fetch(Task, col(Task.project_id) == project.id, NOT_DELETED)
        return tasks.map(lambda rows: ProjectProgress.from_tasks(rows, now=now or self.now()))

    async def _highest_priority(self) -> Result[list[Project], AppError]:
        """Top projects by mean task priority; projects without tasks rank as zero."""
        async with self.store.primary() as ctx:
            projects = await self._fetch(ctx, order_by=_ORDER)
            if isinstance(projects, Err):
                return projects
            tasks = await ctx.fetch(Task, col(Task.project_id).is_not(None), NOT_DELETED)
            if isinstance(tasks, Err):
                return tasks
        priorities: dict[UUID, list[int]] = defaultdict(list)
        for task in tasks.value:
            priorities[task.project_id].append(task.priority)  # type: ignore[index]

        def _mean(project: Project) -> float:
            values = priorities.get(project.id)
            return sum(values) / len(values) if values else 0.0

        ranked = sorted(projects.value, key=_mean, reverse=True)
        return Ok(ranked[:HIGH_PRIORITY_LIMIT])

    async def _query(
        self,
        *predicates: Any,
        order_by: tuple[Any, ...],
    ) -> Result[list[Project], AppError]:
        async with self.store.primary() as ctx:
            return await self._fetch(ctx, *predicates, order_by=order_by)

    async def _check_area(
        self,
        ctx: StoreContext,
        area_id: UUID | None,
        *,
        failure: type[AppError],
    ) -> Result[None, AppError]:
        if area_id is None:
            return Ok(None)
        found = await self._exists(ctx, Area, area_id)
        if isinstance(found, Err):
            return found
        if not found.value:
            return Err(failure("Area does not exist"))  # type: ignore[call-arg]
        return Ok(None)
