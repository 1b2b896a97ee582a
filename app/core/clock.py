"""
Time helpers.

All timestamps are handled as timezone-aware UTC datetimes. Some database
backends hand naive values back, so readers normalise with ``as_utc``.
"""

from __future__ import annotations

from datetime import UTC, datetime

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are assumed UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two instants, never negative."""
    delta = as_utc(end) - as_utc(start)
    return max(0, int(delta.total_seconds() * 1000))
