"""Project endpoints: CRUD, completion, duplication, task lists and progress."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from doneday.api.deps import PROJECT_DEP, PROJECTS_DEP, TASKS_DEP
from doneday.models import Project
from doneday.schemas.projects import (
    ProjectCompletePayload,
    ProjectCreate,
    ProjectDeletionOption,
    ProjectFilter,
    ProjectProgressRead,
    ProjectRead,
    ProjectUpdate,
)
from doneday.schemas.tasks import TaskRead
from doneday.services.repositories.projects import ProjectRepository
from doneday.services.repositories.tasks import TaskRepository

router = APIRouter(prefix="/projects", tags=["projects"])
PROJECT_FILTER_QUERY = Query(default=ProjectFilter.ALL, alias="filter")
AREA_ID_QUERY = Query(default=None)
SEARCH_QUERY = Query(default=None, alias="q")
DELETE_OPTION_QUERY = Query(default=ProjectDeletionOption.MOVE_TO_INBOX)
TARGET_ID_QUERY = Query(default=None)
INCLUDE_COMPLETED_QUERY = Query(default=False)


def _read(project: Project) -> ProjectRead:
    return ProjectRead.model_validate(project, from_attributes=True)


def _read_all(projects: Sequence[Project]) -> list[ProjectRead]:
    return [_read(project) for project in projects]


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    project_filter: ProjectFilter = PROJECT_FILTER_QUERY,
    area_id: UUID | None = AREA_ID_QUERY,
    search: str | None = SEARCH_QUERY,
    projects: ProjectRepository = PROJECTS_DEP,
) -> list[ProjectRead]:
    """List projects by filter, or by free-text search when `q` is given."""
    if search is not None:
        return _read_all((await projects.search_projects(search)).unwrap())
    found = await projects.filter_projects(project_filter, area_id=area_id)
    return _read_all(found.unwrap())


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectRead:
    return _read((await projects.create_project(payload)).unwrap())


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(project: Project = PROJECT_DEP) -> ProjectRead:
    return _read(project)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    payload: ProjectUpdate,
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectRead:
    return _read((await projects.update_project(project, payload)).unwrap())


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    option: ProjectDeletionOption = DELETE_OPTION_QUERY,
    target_id: UUID | None = TARGET_ID_QUERY,
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> Response:
    """Delete a project; its tasks move to the inbox, another project or the trash."""
    (await projects.delete_project(project, option, target_id=target_id)).unwrap()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/complete", response_model=ProjectRead)
async def complete_project(
    payload: ProjectCompletePayload,
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectRead:
    completed = await projects.complete_project(project, payload.option, notes=payload.notes)
    return _read(completed.unwrap())


@router.post("/{project_id}/archive", response_model=ProjectRead)
async def archive_project(
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectRead:
    return _read((await projects.archive_project(project)).unwrap())


@router.post(
    "/{project_id}/duplicate",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_project(
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectRead:
    return _read((await projects.duplicate_project(project)).unwrap())


@router.get("/{project_id}/tasks", response_model=list[TaskRead])
async def list_project_tasks(
    include_completed: bool = INCLUDE_COMPLETED_QUERY,
    project: Project = PROJECT_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TaskRead]:
    found = await tasks.project_tasks(project.id, include_completed=include_completed)
    return [TaskRead.model_validate(task, from_attributes=True) for task in found.unwrap()]


@router.get("/{project_id}/progress", response_model=ProjectProgressRead)
async def get_project_progress(
    project: Project = PROJECT_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> ProjectProgressRead:
    progress = (await projects.progress(project)).unwrap()
    return ProjectProgressRead(**asdict(progress))
