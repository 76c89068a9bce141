"""UTC timestamp helpers.

Every timestamp the core produces (rule bookkeeping, change records, intake
dates) is timezone-aware UTC. Naive datetimes handed in by collaborators are
assumed to already be UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Coerce a datetime to timezone-aware UTC.

    Naive values are tagged as UTC; aware values are converted.

    Args:
        dt: Datetime to coerce (None passes through)

    Returns:
        UTC datetime, or None

    Example:
        >>> ensure_utc(datetime(2026, 2, 5, 9, 30)).tzinfo is timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> str:
    """Render a datetime as ISO 8601 UTC with a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2026, 2, 5, 9, 30, tzinfo=timezone.utc))
        '2026-02-05T09:30:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")
