"""
Datetime utilities - single source of truth for timezone handling.

Rule: ALL internal datetimes must be timezone-aware (UTC).
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def format_detection_time(dt: datetime) -> str:
    """
    Format a timestamp for alert emails.

    Examples:
        >>> format_detection_time(datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc))
        'Mon, 05 Jan 2026 08:00:00 UTC'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.strftime("%a, %d %b %Y %H:%M:%S %Z")
