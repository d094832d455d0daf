# ruff: noqa: INP001
"""Project repository: lifecycle options, progress, search and filters."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from doneday.core.errors import (
    ProjectCreationFailed,
    ProjectDeletionFailed,
    ProjectNameEmpty,
    ProjectNotFound,
    ValidationFailed,
)
from doneday.core.result import Err
from doneday.models import Project, Task
from doneday.schemas.areas import AreaCreate
from doneday.schemas.projects import (
    ProjectCompletionOption,
    ProjectCreate,
    ProjectDeletionOption,
    ProjectFilter,
    ProjectUpdate,
)
from doneday.schemas.tasks import TaskCreate
from doneday.services.repositories import (
    AreaRepository,
    ProjectProgress,
    ProjectRepository,
    TaskRepository,
)


async def _project(projects: ProjectRepository, name: str = "Garden", **fields: Any) -> Project:
    return (await projects.create_project(ProjectCreate(name=name, **fields))).unwrap()


async def _task(tasks: TaskRepository, project: Project, title: str, **fields: Any) -> Task:
    payload = TaskCreate(title=title, project_id=project.id, **fields)
    return (await tasks.create_task(payload)).unwrap()


def _names(rows: list[Project]) -> list[str]:
    return [row.name for row in rows]


@pytest.mark.asyncio
async def test_create_project_defaults_and_validation(projects: ProjectRepository) -> None:
    project = await _project(projects, "  Garden  ")
    assert project.name == "Garden"
    assert project.color == "blue"
    assert project.icon == "folder.fill"
    assert project.sort_order == 1
    assert not project.is_completed

    empty = await projects.create_project(ProjectCreate(name="   "))
    assert isinstance(empty, Err)
    assert isinstance(empty.error, ProjectNameEmpty)

    orphan = await projects.create_project(ProjectCreate(name="Orphan", area_id=uuid4()))
    assert orphan == Err(ProjectCreationFailed("Area does not exist"))


@pytest.mark.asyncio
async def test_update_project_applies_only_supplied_fields(
    projects: ProjectRepository,
    clock,
) -> None:
    project = await _project(projects, notes="seeds")
    clock.advance(minutes=1)

    updated = (await projects.update_project(project, ProjectUpdate(color="green"))).unwrap()

    assert updated.color == "green"
    assert updated.name == "Garden"
    assert updated.notes == "seeds"
    assert updated.updated_at == clock.now


@pytest.mark.asyncio
async def test_delete_moves_tasks_to_inbox_by_default(
    projects: ProjectRepository,
    tasks: TaskRepository,
) -> None:
    project = await _project(projects)
    task = await _task(tasks, project, "dig")

    assert (await projects.delete_project(project)).is_ok

    assert await projects.get_project(project.id) == Err(ProjectNotFound())
    survivor = (await tasks.get_task(task.id)).unwrap()
    assert survivor.project_id is None
    assert not survivor.is_deleted
    assert [row.title for row in (await tasks.inbox_tasks()).unwrap()] == ["dig"]


@pytest.mark.asyncio
async def test_delete_can_move_tasks_to_another_project(
    projects: ProjectRepository,
    tasks: TaskRepository,
) -> None:
    source = await _project(projects, "Old")
    target = await _project(projects, "New")
    task = await _task(tasks, source, "carry over")

    (await projects.delete_project(source, "move_to_project", target_id=target.id)).unwrap()

    assert (await tasks.get_task(task.id)).unwrap().project_id == target.id


@pytest.mark.asyncio
async def test_delete_to_project_requires_a_valid_target(projects: ProjectRepository) -> None:
    project = await _project(projects)

    missing = await projects.delete_project(project, ProjectDeletionOption.MOVE_TO_PROJECT)
    assert isinstance(missing, Err)
    assert isinstance(missing.error, ProjectDeletionFailed)

    itself = await projects.delete_project(
        project,
        ProjectDeletionOption.MOVE_TO_PROJECT,
        target_id=project.id,
    )
    assert isinstance(itself, Err)

    unknown = await projects.delete_project(
        project,
        ProjectDeletionOption.MOVE_TO_PROJECT,
        target_id=uuid4(),
    )
    assert unknown == Err(ProjectDeletionFailed("Target project does not exist"))
    assert (await projects.get_project(project.id)).is_ok


@pytest.mark.asyncio
async def test_delete_with_tasks_moves_them_to_trash(
    projects: ProjectRepository,
    tasks: TaskRepository,
) -> None:
    project = await _project(projects)
    task = await _task(tasks, project, "abandon")

    (await projects.delete_project(project, ProjectDeletionOption.DELETE_TASKS)).unwrap()

    trashed = (await tasks.get_task(task.id)).unwrap()
    assert trashed.is_deleted
    assert trashed.project_id is None
    assert [row.title for row in (await tasks.deleted_tasks()).unwrap()] == ["abandon"]


@pytest.mark.asyncio
async def test_complete_all_completes_every_open_task(
    projects: ProjectRepository,
    tasks: TaskRepository,
) -> None:
    project = await _project(projects, notes="Plan")
    await _task(tasks, project, "a")
    await _task(tasks, project, "b")

    done = (
        await projects.complete_project(project, ProjectCompletionOption.COMPLETE_ALL, notes="yay")
    ).unwrap()

    assert done.is_completed
    assert done.notes == "Plan\n\nCompleted: yay"
    assert (await tasks.project_tasks(project.id)).unwrap() == []
    finished = (await tasks.project_tasks(project.id, include_completed=True)).unwrap()
    assert all(task.is_completed and task.completed_at is not None for task in finished)


@pytest.mark.asyncio
async def test_complete_active_only_leaves_future_starts_open(
    projects: ProjectRepository,
    tasks: TaskRepository,
    clock,
) -> None:
    project = await _project(projects)
    await _task(tasks, project, "started", start_date=clock.now - timedelta(days=1))
    await _task(tasks, project, "unscheduled")
    await _task(tasks, project, "later", start_date=clock.now + timedelta(days=3))

    (await projects.complete_project(project, "complete_active_only")).unwrap()

    still_open = (await tasks.project_tasks(project.id)).unwrap()
    assert [task.title for task in still_open] == ["later"]


@pytest.mark.asyncio
async def test_complete_moving_incomplete_tasks_to_inbox(
    projects: ProjectRepository,
    tasks: TaskRepository,
) -> None:
    project = await _project(projects)
    open_task = await _task(tasks, project, "unfinished")
    finished = await _task(tasks, project, "finished")
    (await tasks.mark_completed(finished)).unwrap()

    (
        await projects.complete_project(project, ProjectCompletionOption.MOVE_INCOMPLETE_TO_INBOX)
    ).unwrap()

    moved = (await tasks.get_task(open_task.id)).unwrap()
    assert moved.project_id is None
    assert not moved.is_completed
    assert (await tasks.get_task(finished.id)).unwrap().project_id == project.id


@pytest.mark.asyncio
async def test_archive_and_duplicate(projects: ProjectRepository, tasks: TaskRepository) -> None:
    project = await _project(projects, notes="beds", color="green")
    open_task = await _task(tasks, project, "weed")

    archived = (await projects.archive_project(project)).unwrap()
    assert archived.is_completed
    assert not (await tasks.get_task(open_task.id)).unwrap().is_completed

    copy = (await projects.duplicate_project(project)).unwrap()
    assert copy.id != project.id
    assert copy.name == "Garden Copy"
    assert copy.notes == "beds"
    assert copy.color == "green"
    assert not copy.is_completed


@pytest.mark.asyncio
async def test_progress_counts(projects: ProjectRepository, tasks: TaskRepository, clock) -> None:
    project = await _project(projects)
    done = await _task(tasks, project, "done", priority=0)
    (await tasks.mark_completed(done)).unwrap()
    await _task(tasks, project, "overdue", priority=1, due_date=clock.now - timedelta(days=1))
    await _task(tasks, project, "soon", priority=2, due_date=clock.now + timedelta(days=1))
    await _task(tasks, project, "someday", priority=3)
    trashed = await _task(tasks, project, "trashed", priority=3)
    (await tasks.soft_delete(trashed)).unwrap()

    progress = (await projects.progress(project)).unwrap()

    assert progress == ProjectProgress(
        total_tasks=4,
        completed_tasks=1,
        active_tasks=3,
        overdue_tasks=1,
        completion_percentage=0.25,
        average_priority=1.5,
    )


def test_progress_of_empty_project_is_zero() -> None:
    progress = ProjectProgress.from_tasks([], now=datetime(2026, 1, 1))
    assert progress.total_tasks == 0
    assert progress.completion_percentage == 0.0
    assert progress.average_priority == 0.0


@pytest.mark.asyncio
async def test_search_matches_name_notes_and_area(
    projects: ProjectRepository,
    areas: AreaRepository,
) -> None:
    home = (await areas.create_area(AreaCreate(name="Home"))).unwrap()
    await _project(projects, "Garden", notes="buy seeds")
    await _project(projects, "Kitchen", area_id=home.id)
    await _project(projects, "Taxes")

    assert _names((await projects.search_projects("SEED")).unwrap()) == ["Garden"]
    assert _names((await projects.search_projects("home")).unwrap()) == ["Kitchen"]
    assert _names((await projects.search_projects("ax")).unwrap()) == ["Taxes"]
    assert _names((await projects.search_projects("  ")).unwrap()) == [
        "Garden",
        "Kitchen",
        "Taxes",
    ]
    assert (await projects.search_projects("%")).unwrap() == []


@pytest.mark.asyncio
async def test_filters(
    projects: ProjectRepository,
    tasks: TaskRepository,
    areas: AreaRepository,
    clock,
) -> None:
    work = (await areas.create_area(AreaCreate(name="Work"))).unwrap()
    late = await _project(projects, "Late", area_id=work.id)
    calm = await _project(projects, "Calm")
    finished = await _project(projects, "Finished")
    await _task(tasks, late, "report", priority=3, due_date=clock.now - timedelta(hours=2))
    await _task(tasks, calm, "stretch", priority=1)
    (await projects.archive_project(finished)).unwrap()

    assert _names((await projects.filter_projects(ProjectFilter.ACTIVE)).unwrap()) == [
        "Calm",
        "Late",
    ]
    assert _names((await projects.filter_projects("completed")).unwrap()) == ["Finished"]
    assert _names((await projects.filter_projects("with_overdue_tasks")).unwrap()) == ["Late"]
    by_area = await projects.filter_projects(ProjectFilter.BY_AREA, area_id=work.id)
    assert _names(by_area.unwrap()) == ["Late"]
    ranked = (await projects.filter_projects(ProjectFilter.HIGH_PRIORITY)).unwrap()
    assert _names(ranked) == ["Late", "Calm", "Finished"]
    assert _names((await projects.filter_projects()).unwrap()) == ["Late", "Calm", "Finished"]


@pytest.mark.asyncio
async def test_by_area_filter_requires_an_area(projects: ProjectRepository) -> None:
    result = await projects.filter_projects(ProjectFilter.BY_AREA)
    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationFailed)
    assert result.error.field == "area_id"
