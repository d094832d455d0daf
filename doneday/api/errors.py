"""Endpoints exposing the single-slot error channel."""

from __future__ import annotations

from fastapi import APIRouter

from doneday.api.deps import ERRORS_DEP
from doneday.schemas.errors import ErrorRead
from doneday.services.error_channel import ErrorChannel

router = APIRouter(prefix="/errors", tags=["errors"])


@router.get("/current", response_model=ErrorRead | None)
async def get_current_error(errors: ErrorChannel = ERRORS_DEP) -> ErrorRead | None:
    """Return the pending error, if any, without clearing it."""
    if errors.current is None:
        return None
    return ErrorRead.from_error(errors.current)


@router.post("/acknowledge", response_model=ErrorRead | None)
async def acknowledge_error(errors: ErrorChannel = ERRORS_DEP) -> ErrorRead | None:
    """Clear the pending error and return what was cleared."""
    error = errors.acknowledge()
    return ErrorRead.from_error(error) if error is not None else None
