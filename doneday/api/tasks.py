"""Task endpoints: smart lists, CRUD, completion, trash, snooze and tags."""

from __future__ import annotations

from collections.abc import Sequence

from fastapi import APIRouter, Query, Response, status

from doneday.api.deps import CONTAINER_DEP, TASK_DEP, TASKS_DEP
from doneday.models import Tag, Task
from doneday.schemas.tags import TagRead
from doneday.schemas.tasks import (
    TaskCreate,
    TaskRead,
    TaskSnoozePayload,
    TaskTagsUpdate,
    TaskUpdate,
)
from doneday.services.container import ServiceContainer
from doneday.services.repositories.tasks import TaskFilter, TaskRepository

router = APIRouter(prefix="/tasks", tags=["tasks"])
TASK_FILTER_QUERY = Query(default=TaskFilter.ALL, alias="filter")
DAYS_QUERY = Query(default=None, ge=1, le=365)


def _read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


def _read_all(tasks: Sequence[Task]) -> list[TaskRead]:
    return [_read(task) for task in tasks]


def _read_tags(tags: Sequence[Tag]) -> list[TagRead]:
    return [TagRead.model_validate(tag, from_attributes=True) for tag in tags]


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    task_filter: TaskFilter = TASK_FILTER_QUERY,
    days: int | None = DAYS_QUERY,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TaskRead]:
    """List one smart list: all, today, upcoming, inbox or completed."""
    return _read_all((await tasks.list_tasks(task_filter, days=days)).unwrap())


@router.get("/deleted", response_model=list[TaskRead])
async def list_deleted_tasks(tasks: TaskRepository = TASKS_DEP) -> list[TaskRead]:
    """List soft-deleted tasks, most recently trashed first."""
    return _read_all((await tasks.deleted_tasks()).unwrap())


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    return _read((await tasks.create_task(payload)).unwrap())


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task: Task = TASK_DEP) -> TaskRead:
    return _read(task)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    payload: TaskUpdate,
    task: Task = TASK_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> TaskRead:
    """Apply a partial update; only supplied fields are validated."""
    return _read((await tasks.update_task(task, payload)).unwrap())


@router.post("/{task_id}/complete", response_model=TaskRead)
async def complete_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    return _read((await tasks.mark_completed(task)).unwrap())


@router.post("/{task_id}/incomplete", response_model=TaskRead)
async def reopen_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    return _read((await tasks.mark_incomplete(task)).unwrap())


@router.post("/{task_id}/toggle", response_model=TaskRead)
async def toggle_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    return _read((await tasks.toggle_completion(task)).unwrap())


@router.delete("/{task_id}", response_model=TaskRead)
async def delete_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    """Move a task to the trash."""
    return _read((await tasks.soft_delete(task)).unwrap())


@router.delete("/{task_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def purge_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> Response:
    """Delete a task and its tag links for good."""
    (await tasks.delete_task(task)).unwrap()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/restore", response_model=TaskRead)
async def restore_task(task: Task = TASK_DEP, tasks: TaskRepository = TASKS_DEP) -> TaskRead:
    return _read((await tasks.restore(task)).unwrap())


@router.post("/{task_id}/snooze", response_model=TaskRead)
async def snooze_task(
    payload: TaskSnoozePayload,
    task: Task = TASK_DEP,
    container: ServiceContainer = CONTAINER_DEP,
) -> TaskRead:
    minutes = payload.minutes
    if minutes is None:
        minutes = container.settings.snooze_minutes
    return _read((await container.tasks.snooze_task(task, minutes)).unwrap())


@router.get("/{task_id}/tags", response_model=list[TagRead])
async def list_task_tags(
    task: Task = TASK_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TagRead]:
    return _read_tags((await tasks.tags_for_task(task)).unwrap())


@router.put("/{task_id}/tags", response_model=list[TagRead])
async def replace_task_tags(
    payload: TaskTagsUpdate,
    task: Task = TASK_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TagRead]:
    """Replace the task's tag set."""
    return _read_tags((await tasks.set_tags(task, payload.tag_ids)).unwrap())
