"""Area endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from doneday.api.deps import AREA_DEP, AREAS_DEP, PROJECTS_DEP, TASKS_DEP
from doneday.models import Area
from doneday.schemas.areas import AreaCreate, AreaRead, AreaUpdate
from doneday.schemas.projects import ProjectRead
from doneday.schemas.tasks import TaskRead
from doneday.services.repositories.areas import AreaRepository
from doneday.services.repositories.projects import ProjectRepository
from doneday.services.repositories.tasks import TaskRepository

router = APIRouter(prefix="/areas", tags=["areas"])


def _read(area: Area) -> AreaRead:
    return AreaRead.model_validate(area, from_attributes=True)


@router.get("", response_model=list[AreaRead])
async def list_areas(areas: AreaRepository = AREAS_DEP) -> list[AreaRead]:
    return [_read(area) for area in (await areas.all_areas()).unwrap()]


@router.post("", response_model=AreaRead, status_code=status.HTTP_201_CREATED)
async def create_area(payload: AreaCreate, areas: AreaRepository = AREAS_DEP) -> AreaRead:
    return _read((await areas.create_area(payload)).unwrap())


@router.get("/{area_id}", response_model=AreaRead)
async def get_area(area: Area = AREA_DEP) -> AreaRead:
    return _read(area)


@router.patch("/{area_id}", response_model=AreaRead)
async def update_area(
    payload: AreaUpdate,
    area: Area = AREA_DEP,
    areas: AreaRepository = AREAS_DEP,
) -> AreaRead:
    return _read((await areas.update_area(area, payload)).unwrap())


@router.delete("/{area_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_area(area: Area = AREA_DEP, areas: AreaRepository = AREAS_DEP) -> Response:
    """Delete an area; its projects and tasks are kept and detached."""
    (await areas.delete_area(area)).unwrap()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{area_id}/projects", response_model=list[ProjectRead])
async def list_area_projects(
    area: Area = AREA_DEP,
    projects: ProjectRepository = PROJECTS_DEP,
) -> list[ProjectRead]:
    found = (await projects.projects_in_area(area.id)).unwrap()
    return [ProjectRead.model_validate(project, from_attributes=True) for project in found]


@router.get("/{area_id}/tasks", response_model=list[TaskRead])
async def list_area_tasks(
    area: Area = AREA_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TaskRead]:
    found = (await tasks.area_tasks(area.id)).unwrap()
    return [TaskRead.model_validate(task, from_attributes=True) for task in found]
