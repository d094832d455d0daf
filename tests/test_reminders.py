# ruff: noqa: INP001
"""Reminder time derivation and local day windows."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from doneday.core.time import day_window, to_naive_utc
from doneday.models import ReminderType
from doneday.services.reminders import compute_reminder, snooze

NOW = datetime(2026, 3, 10, 12, 0)
DUE = datetime(2026, 3, 12, 9, 0)


@pytest.mark.parametrize(
    ("kind", "minutes"),
    [
        (ReminderType.FIFTEEN_MINUTES, 15),
        (ReminderType.THIRTY_MINUTES, 30),
        (ReminderType.ONE_HOUR, 60),
        (ReminderType.ONE_DAY, 1440),
    ],
)
def test_relative_reminder_is_offset_from_due_date(kind: ReminderType, minutes: int) -> None:
    config = compute_reminder(
        due_date=DUE,
        reminder_type=kind,
        reminder_time=None,
        enabled=True,
        now=NOW,
    )
    assert config.enabled
    assert config.reminder_type is kind
    assert config.reminder_time == DUE - timedelta(minutes=minutes)
    assert config.offset_minutes == minutes


def test_relative_reminder_ignores_explicit_time() -> None:
    config = compute_reminder(
        due_date=DUE,
        reminder_type="30m",
        reminder_time=NOW,
        enabled=True,
        now=NOW,
    )
    assert config.reminder_time == DUE - timedelta(minutes=30)


def test_exact_reminder_uses_explicit_time_or_an_hour_before_due() -> None:
    chosen = DUE - timedelta(hours=5)
    explicit = compute_reminder(
        due_date=DUE,
        reminder_type=ReminderType.EXACT,
        reminder_time=chosen,
        enabled=True,
        now=NOW,
    )
    assert explicit.reminder_time == chosen
    assert explicit.offset_minutes == 0

    defaulted = compute_reminder(
        due_date=DUE,
        reminder_type=ReminderType.EXACT,
        reminder_time=None,
        enabled=True,
        now=NOW,
    )
    assert defaulted.reminder_time == DUE - timedelta(hours=1)


def test_missing_due_date_forces_exact_reminder() -> None:
    config = compute_reminder(
        due_date=None,
        reminder_type=ReminderType.ONE_DAY,
        reminder_time=None,
        enabled=True,
        now=NOW,
    )
    assert config.reminder_type is ReminderType.EXACT
    assert config.reminder_time == NOW + timedelta(hours=1)
    assert config.offset_minutes == 0


def test_disabled_reminder_clears_time_but_keeps_type() -> None:
    config = compute_reminder(
        due_date=DUE,
        reminder_type=ReminderType.ONE_HOUR,
        reminder_time=NOW,
        enabled=False,
        now=NOW,
    )
    assert not config.enabled
    assert config.reminder_type is ReminderType.ONE_HOUR
    assert config.reminder_time is None
    assert config.offset_minutes == 0


def test_snooze_is_exact_from_now() -> None:
    config = snooze(now=NOW, minutes=45)
    assert config.enabled
    assert config.reminder_type is ReminderType.EXACT
    assert config.reminder_time == NOW + timedelta(minutes=45)


def test_day_window_in_utc() -> None:
    start, end = day_window(NOW, ZoneInfo("UTC"))
    assert start == datetime(2026, 3, 10)
    assert end == datetime(2026, 3, 11)


def test_day_window_follows_local_calendar_across_dst() -> None:
    # 2026-03-08 is the spring-forward day in New York: 23 hours long.
    start, end = day_window(datetime(2026, 3, 8, 15, 0), ZoneInfo("America/New_York"))
    assert start == datetime(2026, 3, 8, 5, 0)
    assert end == datetime(2026, 3, 9, 4, 0)
    assert end - start == timedelta(hours=23)


def test_to_naive_utc_converts_aware_values() -> None:
    aware = datetime(2026, 3, 10, 8, 0, tzinfo=ZoneInfo("America/New_York"))
    assert to_naive_utc(aware) == datetime(2026, 3, 10, 12, 0)
    assert to_naive_utc(NOW) is NOW
