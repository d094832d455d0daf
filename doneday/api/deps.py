"""Reusable FastAPI dependencies: the service container and load-or-404 helpers.

Repositories return `Result` values; route handlers call `.unwrap()` so that an
`Err` is raised as its `AppError` and rendered by the installed error handlers.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from doneday.models import Area, Project, Tag, Task
from doneday.services.container import ServiceContainer
from doneday.services.error_channel import ErrorChannel
from doneday.services.repositories.areas import AreaRepository
from doneday.services.repositories.projects import ProjectRepository
from doneday.services.repositories.tags import TagRepository
from doneday.services.repositories.tasks import TaskRepository


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service container is not ready",
        )
    return container


CONTAINER_DEP = Depends(get_container)


def get_task_repository(container: ServiceContainer = CONTAINER_DEP) -> TaskRepository:
    return container.tasks


def get_project_repository(container: ServiceContainer = CONTAINER_DEP) -> ProjectRepository:
    return container.projects


def get_area_repository(container: ServiceContainer = CONTAINER_DEP) -> AreaRepository:
    return container.areas


def get_tag_repository(container: ServiceContainer = CONTAINER_DEP) -> TagRepository:
    return container.tags


def get_error_channel(container: ServiceContainer = CONTAINER_DEP) -> ErrorChannel:
    return container.errors


TASKS_DEP = Depends(get_task_repository)
PROJECTS_DEP = Depends(get_project_repository)
AREAS_DEP = Depends(get_area_repository)
TAGS_DEP = Depends(get_tag_repository)
ERRORS_DEP = Depends(get_error_channel)


async def get_task_or_404(task_id: UUID, tasks: TaskRepository = TASKS_DEP) -> Task:
    """Load a task by id or raise `TaskNotFound` (rendered as 404)."""
    return (await tasks.get_task(task_id)).unwrap()


async def get_project_or_404(
    project_id: UUID,
    projects: ProjectRepository = PROJECTS_DEP,
) -> Project:
    return (await projects.get_project(project_id)).unwrap()


async def get_area_or_404(area_id: UUID, areas: AreaRepository = AREAS_DEP) -> Area:
    return (await areas.get_area(area_id)).unwrap()


async def get_tag_or_404(tag_id: UUID, tags: TagRepository = TAGS_DEP) -> Tag:
    return (await tags.get_tag(tag_id)).unwrap()


TASK_DEP = Depends(get_task_or_404)
PROJECT_DEP = Depends(get_project_or_404)
AREA_DEP = Depends(get_area_or_404)
TAG_DEP = Depends(get_tag_or_404)
