"""Shared time utilities for the Retention Sweeper.

All business logic works with timezone-aware UTC datetimes. Message stores
may hand back naive values (file mtimes, headers without a zone), which are
normalized here before any cutoff comparison.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware).

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from retention_sweeper.core.utils import utc_now
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def to_aware_utc(dt: datetime) -> datetime:
    """Convert any datetime to timezone-aware UTC.

    - If naive: assumes UTC, adds tzinfo
    - If aware: converts to UTC

    Args:
        dt: A datetime object (naive or timezone-aware).

    Returns:
        A timezone-aware datetime object in UTC.

    Example:
        >>> from datetime import datetime
        >>> from retention_sweeper.core.utils import to_aware_utc
        >>> aware = to_aware_utc(datetime(2024, 1, 15, 10, 30))
        >>> aware.tzinfo is not None
        True
        >>> aware.hour
        10
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_timestamp(ts: float) -> datetime:
    """Convert a POSIX timestamp (e.g. a file mtime) to aware UTC."""
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def whole_seconds(delta: timedelta) -> int:
    """Truncate a timedelta to whole seconds, toward zero.

    Example:
        >>> whole_seconds(timedelta(seconds=59, milliseconds=999))
        59
    """
    return int(delta.total_seconds())
