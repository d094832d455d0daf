"""Typed failure taxonomy shared by the store, repositories and notifications.

Every kind maps to a display message and an optional recovery suggestion.
Errors are usually carried as values inside `Err`; the HTTP layer raises them.
"""

from __future__ import annotations

from typing import ClassVar

_RETRY_SUGGESTION = "Try again or contact support."
_RESTART_SUGGESTION = "Try restarting the application."


class AppError(Exception):
    """Base class for every error kind the core reports."""

    code: ClassVar[str] = "app_error"
    recovery_suggestion: ClassVar[str | None] = _RETRY_SUGGESTION

    @property
    def message(self) -> str:
        return "Unexpected error"

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class _ReasonError(AppError):
    """Failure kinds carrying a human-readable reason."""

    action: ClassVar[str] = ""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    @property
    def message(self) -> str:
        return f"{self.action}: {self.reason}"


class _CauseError(AppError):
    """Failure kinds wrapping an underlying exception."""

    summary: ClassVar[str] = ""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause
        self.__cause__ = cause

    @property
    def message(self) -> str:
        return f"{self.summary}: {self.cause}"


class _FixedError(AppError):
    text: ClassVar[str] = ""

    @property
    def message(self) -> str:
        return self.text


# --- Tasks ---


class TaskCreationFailed(_ReasonError):
    code = "task_creation_failed"
    action = "Could not create task"


class TaskUpdateFailed(_ReasonError):
    code = "task_update_failed"
    action = "Could not update task"


class TaskDeletionFailed(_ReasonError):
    code = "task_deletion_failed"
    action = "Could not delete task"


class TaskNotFound(_FixedError):
    code = "task_not_found"
    text = "Task not found"


# --- Projects ---


class ProjectCreationFailed(_ReasonError):
    code = "project_creation_failed"
    action = "Could not create project"


class ProjectUpdateFailed(_ReasonError):
    code = "project_update_failed"
    action = "Could not update project"


class ProjectDeletionFailed(_ReasonError):
    code = "project_deletion_failed"
    action = "Could not delete project"


class ProjectNotFound(_FixedError):
    code = "project_not_found"
    text = "Project not found"


# --- Areas ---


class AreaCreationFailed(_ReasonError):
    code = "area_creation_failed"
    action = "Could not create area"


class AreaUpdateFailed(_ReasonError):
    code = "area_update_failed"
    action = "Could not update area"


class AreaDeletionFailed(_ReasonError):
    code = "area_deletion_failed"
    action = "Could not delete area"


class AreaNotFound(_FixedError):
    code = "area_not_found"
    text = "Area not found"


# --- Tags ---


class TagCreationFailed(_ReasonError):
    code = "tag_creation_failed"
    action = "Could not create tag"


class TagUpdateFailed(_ReasonError):
    code = "tag_update_failed"
    action = "Could not update tag"


class TagDeletionFailed(_ReasonError):
    code = "tag_deletion_failed"
    action = "Could not delete tag"


class TagNotFound(_FixedError):
    code = "tag_not_found"
    text = "Tag not found"


# --- Validation ---


class ValidationFailed(AppError):
    """User-correctable field error."""

    code = "validation_failed"
    recovery_suggestion = "Correct the highlighted field and try again."

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(field, reason)
        self.field = field
        self.reason = reason

    @property
    def message(self) -> str:
        return self.reason


class ProjectNameEmpty(ValidationFailed):
    code = "project_name_empty"
    recovery_suggestion = "Please enter a project name."

    def __init__(self) -> None:
        super().__init__("name", "Project name cannot be empty")


class InvalidData(_FixedError):
    code = "invalid_data"
    text = "Invalid data"


# --- Store ---


class StoreFetchFailed(_CauseError):
    code = "store_fetch_failed"
    summary = "Failed to load data"
    recovery_suggestion = _RESTART_SUGGESTION


class StoreSaveFailed(_CauseError):
    code = "store_save_failed"
    summary = "Failed to save data"
    recovery_suggestion = _RESTART_SUGGESTION


class StoreNotPersisted(_CauseError):
    """The on-disk store could not be opened; an in-memory store is in use."""

    code = "store_not_persisted"
    summary = "Data store unavailable, changes will not be persisted"
    recovery_suggestion = "Check the data directory permissions and free space, then restart."


StoreError = StoreFetchFailed | StoreSaveFailed


# --- Import / export ---


class ExportFailed(_ReasonError):
    code = "export_failed"
    action = "Export failed"


class ImportFailed(_ReasonError):
    code = "import_failed"
    action = "Import failed"


class FileNotFound(_FixedError):
    code = "file_not_found"
    text = "File not found"
    recovery_suggestion = "Check that the file exists at the given path."


class InvalidFileFormat(_FixedError):
    code = "invalid_file_format"
    text = "Invalid file format"
    recovery_suggestion = "Make sure the file is in JSON format."


class EncodingFailed(_FixedError):
    code = "encoding_failed"
    text = "Failed to encode data"


class DecodingFailed(_FixedError):
    code = "decoding_failed"
    text = "Failed to decode data"


# --- Notifications ---


class NotificationPermissionDenied(_FixedError):
    """Degraded mode: the notification facility refused permission."""

    code = "notification_permission_denied"
    text = "Reminders are disabled because notification permission was denied"
    recovery_suggestion = "Allow notifications in system settings, then edit a reminder to retry."
