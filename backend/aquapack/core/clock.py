"""Server clock used for checkpoints and ``updated_at`` stamping.

Everything that needs "now" takes a ``Clock`` so pull checkpoints and
conflict detection can be driven deterministically in tests.
"""

from datetime import datetime, timezone
from typing import Protocol

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency; override in tests with a frozen clock."""
    return _system_clock


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes and convert aware ones to UTC.

    SQLite drops tzinfo on round-trip and field devices sometimes send
    timestamps without an offset; both are treated as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
