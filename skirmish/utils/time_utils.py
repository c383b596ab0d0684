"""
Datetime helpers shared by services and repositories.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

NowProvider = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current aware UTC time."""
    return datetime.now(UTC)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC for storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def from_naive_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to a naive datetime read from storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def add_ms(value: datetime, milliseconds: float) -> datetime:
    """Return ``value`` shifted by a millisecond duration."""
    return value + timedelta(milliseconds=milliseconds)
