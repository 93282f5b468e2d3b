"""Current-time source.

All timestamps are handled as naive UTC.
"""
from datetime import datetime, timezone
from typing import Callable


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def get_clock() -> Callable[[], datetime]:
    """Clock dependency, overridden in tests."""
    return utcnow
