"""Health probe response schema."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class HealthStatusResponse(SQLModel):
    """Liveness payload, including whether data is being persisted."""

    ok: bool = Field(
        description="Indicates whether the probe check succeeded.",
        examples=[True],
    )
    persisted: bool = Field(
        description="False when the on-disk store failed to open and an in-memory one is in use.",
        examples=[True],
    )
    reminders_degraded: bool = Field(
        description="True while notification permission is denied.",
        examples=[False],
    )
