"""
Domain time utilities (pure).

Centralized timestamp validation and conversion helpers.

The persisted document stores timestamps as integer epoch milliseconds;
the domain always works with timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    """Current time as a UTC datetime truncated to whole milliseconds."""

    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_epoch_millis(value: datetime) -> int:
    require_utc_timestamp("timestamp", value)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a stored timestamp into a timezone-aware UTC datetime.

    Accepts epoch milliseconds (int/float), ISO-8601 strings (with or without
    a trailing 'Z') and datetimes. Naive values are assumed to be UTC.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")
    elif isinstance(value, (int, float)):
        return _EPOCH + timedelta(milliseconds=value)
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
