"""Competition window gate."""

from __future__ import annotations

from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite, bare ISO strings) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_open(now: datetime, end_at: datetime | None) -> bool:
    """Submissions are accepted unless an end is set and ``now`` is past it."""
    if end_at is None:
        return True
    return not as_utc(now) > as_utc(end_at)
