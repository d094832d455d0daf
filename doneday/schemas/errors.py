"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel

from doneday.core.errors import AppError


class ErrorRead(SQLModel):
    """Display-ready error: message, machine code and recovery hint."""

    detail: str = Field(description="Localized, display-ready error message.")
    code: str = Field(
        description="Machine-readable error kind.",
        examples=["validation_failed", "task_not_found"],
    )
    field: str | None = Field(default=None, description="Offending field for validation errors.")
    recovery_suggestion: str | None = None

    @classmethod
    def from_error(cls, error: AppError) -> ErrorRead:
        return cls(
            detail=error.message,
            code=error.code,
            field=getattr(error, "field", None),
            recovery_suggestion=error.recovery_suggestion,
        )
