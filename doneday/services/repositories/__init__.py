"""Store-backed repositories, one per entity type."""

from doneday.services.repositories.areas import AreaRepository
from doneday.services.repositories.projects import ProjectProgress, ProjectRepository
from doneday.services.repositories.tags import TagRepository
from doneday.services.repositories.tasks import TaskFilter, TaskRepository

__all__ = [
    "AreaRepository",
    "ProjectProgress",
    "ProjectRepository",
    "TagRepository",
    "TaskFilter",
    "TaskRepository",
]
