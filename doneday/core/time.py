"""Time helpers.

Timestamps are stored as naive UTC datetimes (SQLite has no timezone type).
Calendar-day boundaries for smart lists are computed in the configured local
timezone and converted back to naive UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import DateTime

# Column type for every stored timestamp; bound values are naive UTC.
NAIVE_DATETIME = DateTime(timezone=False)


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def day_window(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return `[start_of_today, start_of_tomorrow)` for `now` as naive UTC bounds."""
    local_now = now.replace(tzinfo=UTC).astimezone(tz)
    start_local = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    # Adding a calendar day in local time keeps DST days at 23/25 hours.
    end_local = datetime.combine(local_now.date() + timedelta(days=1), time.min, tzinfo=tz)
    return to_naive_utc(start_local), to_naive_utc(end_local)
