"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from doneday.models.areas import Area
from doneday.models.projects import Project
from doneday.models.tags import Tag
from doneday.models.task_tags import TaskTag
from doneday.models.tasks import ReminderType, Task

__all__ = [
    "Area",
    "Project",
    "ReminderType",
    "Tag",
    "Task",
    "TaskTag",
]
