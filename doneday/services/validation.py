"""Pre-commit field validation.

Every check trims surrounding whitespace first and returns the normalized value
on success. Composite checks stop at the first failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

from doneday.core.errors import ProjectNameEmpty, ValidationFailed
from doneday.core.result import Err, Ok, Result

MIN_TITLE_LENGTH: Final = 1
MAX_TITLE_LENGTH: Final = 200
MAX_NOTES_LENGTH: Final = 2000
MAX_PROJECT_NAME_LENGTH: Final = 100
MAX_AREA_NAME_LENGTH: Final = 50
MAX_TAG_NAME_LENGTH: Final = 30
MAX_COLOR_LENGTH: Final = 30
MIN_PRIORITY: Final = 0
MAX_PRIORITY: Final = 3
MAX_SNOOZE_MINUTES: Final = 1440
_TAG_PUNCTUATION: Final = frozenset(" -_")


@dataclass(frozen=True)
class ValidTask:
    """Normalized output of the composite task check."""

    title: str
    notes: str | None
    due_date: datetime | None
    priority: int


def _required_text(
    value: str,
    *,
    field: str,
    label: str,
    max_length: int,
) -> Result[str, ValidationFailed]:
    trimmed = value.strip()
    if not trimmed:
        return Err(ValidationFailed(field, f"{label} cannot be empty"))
    if len(trimmed) > max_length:
        return Err(
            ValidationFailed(field, f"{label} is too long (maximum {max_length} characters)"),
        )
    return Ok(trimmed)


def _optional_text(
    value: str | None,
    *,
    field: str,
    label: str,
    max_length: int,
) -> Result[str | None, ValidationFailed]:
    if value is None:
        return Ok(None)
    trimmed = value.strip()
    if not trimmed:
        return Ok(None)
    if len(trimmed) > max_length:
        return Err(
            ValidationFailed(field, f"{label} is too long (maximum {max_length} characters)"),
        )
    return Ok(trimmed)


def validate_task_title(title: str) -> Result[str, ValidationFailed]:
    return _required_text(title, field="title", label="Task title", max_length=MAX_TITLE_LENGTH)


def validate_task_notes(notes: str | None) -> Result[str | None, ValidationFailed]:
    return _optional_text(notes, field="notes", label="Task notes", max_length=MAX_NOTES_LENGTH)


def validate_project_name(name: str) -> Result[str, ValidationFailed]:
    if not name.strip():
        return Err(ProjectNameEmpty())
    return _required_text(
        name,
        field="name",
        label="Project name",
        max_length=MAX_PROJECT_NAME_LENGTH,
    )


def validate_project_notes(notes: str | None) -> Result[str | None, ValidationFailed]:
    return _optional_text(notes, field="notes", label="Project notes", max_length=MAX_NOTES_LENGTH)


def validate_area_name(name: str) -> Result[str, ValidationFailed]:
    return _required_text(name, field="name", label="Area name", max_length=MAX_AREA_NAME_LENGTH)


def validate_area_notes(notes: str | None) -> Result[str | None, ValidationFailed]:
    return _optional_text(notes, field="notes", label="Area notes", max_length=MAX_NOTES_LENGTH)


def validate_tag_name(name: str) -> Result[str, ValidationFailed]:
    """Tag names allow letters, digits, space, hyphen and underscore only."""
    checked = _required_text(name, field="name", label="Tag name", max_length=MAX_TAG_NAME_LENGTH)
    if isinstance(checked, Err):
        return checked
    if any(not (ch.isalnum() or ch in _TAG_PUNCTUATION) for ch in checked.value):
        return Err(ValidationFailed("name", "Tag name contains invalid characters"))
    return checked


def validate_color(color: str | None) -> Result[str | None, ValidationFailed]:
    """`None` keeps the entity default; a supplied color must not be blank."""
    if color is None:
        return Ok(None)
    return _required_text(color, field="color", label="Color", max_length=MAX_COLOR_LENGTH)


def validate_due_date(due_date: datetime | None) -> Result[datetime | None, ValidationFailed]:
    # Past dates are allowed so overdue tasks can be recorded.
    return Ok(due_date)


def validate_priority(priority: int) -> Result[int, ValidationFailed]:
    if isinstance(priority, bool) or not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        return Err(
            ValidationFailed(
                "priority",
                f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}",
            ),
        )
    return Ok(priority)


def validate_snooze_minutes(minutes: int) -> Result[int, ValidationFailed]:
    if not 1 <= minutes <= MAX_SNOOZE_MINUTES:
        return Err(
            ValidationFailed(
                "minutes",
                f"Snooze must be between 1 and {MAX_SNOOZE_MINUTES} minutes",
            ),
        )
    return Ok(minutes)


def validate_task(
    *,
    title: str,
    notes: str | None,
    due_date: datetime | None,
    priority: int,
) -> Result[ValidTask, ValidationFailed]:
    """Validate title, notes, due date, priority in that order; first failure wins."""
    valid_title = validate_task_title(title)
    if isinstance(valid_title, Err):
        return valid_title
    valid_notes = validate_task_notes(notes)
    if isinstance(valid_notes, Err):
        return valid_notes
    valid_due = validate_due_date(due_date)
    if isinstance(valid_due, Err):
        return valid_due
    valid_priority = validate_priority(priority)
    if isinstance(valid_priority, Err):
        return valid_priority
    return Ok(
        ValidTask(
            title=valid_title.value,
            notes=valid_notes.value,
            due_date=valid_due.value,
            priority=valid_priority.value,
        ),
    )
