"""Reminder time computation.

Pure functions: given a due date, a reminder type and any explicitly chosen
time, derive the effective reminder configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Final

from doneday.models.tasks import ReminderType

OFFSET_MINUTES: Final[dict[ReminderType, int]] = {
    ReminderType.FIFTEEN_MINUTES: 15,
    ReminderType.THIRTY_MINUTES: 30,
    ReminderType.ONE_HOUR: 60,
    ReminderType.ONE_DAY: 1440,
}
DEFAULT_LEAD: Final = timedelta(hours=1)


@dataclass(frozen=True)
class ReminderConfig:
    """Effective reminder fields to store on a task."""

    enabled: bool
    reminder_type: ReminderType
    reminder_time: datetime | None
    offset_minutes: int


def compute_reminder(
    *,
    due_date: datetime | None,
    reminder_type: ReminderType | str,
    reminder_time: datetime | None,
    enabled: bool,
    now: datetime,
) -> ReminderConfig:
    kind = ReminderType(reminder_type)
    if not enabled:
        return ReminderConfig(
            enabled=False, reminder_type=kind, reminder_time=None, offset_minutes=0
        )

    if due_date is None:
        return ReminderConfig(
            enabled=True,
            reminder_type=ReminderType.EXACT,
            reminder_time=reminder_time or now + DEFAULT_LEAD,
            offset_minutes=0,
        )

    if kind is ReminderType.EXACT:
        return ReminderConfig(
            enabled=True,
            reminder_type=kind,
            reminder_time=reminder_time or due_date - DEFAULT_LEAD,
            offset_minutes=0,
        )

    offset = OFFSET_MINUTES[kind]
    return ReminderConfig(
        enabled=True,
        reminder_type=kind,
        reminder_time=due_date - timedelta(minutes=offset),
        offset_minutes=offset,
    )


def snooze(*, now: datetime, minutes: int) -> ReminderConfig:
    """Exact reminder `minutes` from `now`."""
    return ReminderConfig(
        enabled=True,
        reminder_type=ReminderType.EXACT,
        reminder_time=now + timedelta(minutes=minutes),
        offset_minutes=0,
    )
