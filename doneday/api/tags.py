"""Tag endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from doneday.api.deps import TAG_DEP, TAGS_DEP, TASKS_DEP
from doneday.models import Tag
from doneday.schemas.tags import TagCreate, TagRead, TagUpdate
from doneday.schemas.tasks import TaskRead
from doneday.services.repositories.tags import TagRepository
from doneday.services.repositories.tasks import TaskRepository

router = APIRouter(prefix="/tags", tags=["tags"])


def _read(tag: Tag) -> TagRead:
    return TagRead.model_validate(tag, from_attributes=True)


@router.get("", response_model=list[TagRead])
async def list_tags(tags: TagRepository = TAGS_DEP) -> list[TagRead]:
    return [_read(tag) for tag in (await tags.all_tags()).unwrap()]


@router.post("", response_model=TagRead, status_code=status.HTTP_201_CREATED)
async def create_tag(payload: TagCreate, tags: TagRepository = TAGS_DEP) -> TagRead:
    """Create a tag; names are unique regardless of case."""
    return _read((await tags.create_tag(payload)).unwrap())


@router.patch("/{tag_id}", response_model=TagRead)
async def update_tag(
    payload: TagUpdate,
    tag: Tag = TAG_DEP,
    tags: TagRepository = TAGS_DEP,
) -> TagRead:
    return _read((await tags.update_tag(tag, payload)).unwrap())


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag: Tag = TAG_DEP, tags: TagRepository = TAGS_DEP) -> Response:
    (await tags.delete_tag(tag)).unwrap()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{tag_id}/tasks", response_model=list[TaskRead])
async def list_tagged_tasks(
    tag: Tag = TAG_DEP,
    tasks: TaskRepository = TASKS_DEP,
) -> list[TaskRead]:
    found = (await tasks.tasks_with_tag(tag.id)).unwrap()
    return [TaskRead.model_validate(task, from_attributes=True) for task in found]
