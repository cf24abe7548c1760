"""Timestamp utilities for UTC handling and display formatting.

This module provides utilities for working with timestamps in UTC:
- Getting current UTC time
- Converting timezone-naive to timezone-aware UTC
- Parsing ISO 8601 strings (Nomad and GitHub API responses)
- Formatting commit dates for history listings
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports the formats produced by ``git log --format=%cI`` and the GitHub API:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00+02:00
    - 2025-11-04T12:00:00

    Args:
        iso_string: ISO 8601 formatted datetime string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails

    Example:
        >>> dt = parse_iso_datetime("2025-11-04T12:00:00Z")
        >>> dt.year == 2025 and dt.month == 11 and dt.day == 4
        True
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def format_commit_date(dt: Optional[datetime]) -> str:
    """Format a commit date for history listings (``YYYY-MM-DD HH:MM``).

    The date is shown in UTC so listings are stable across machines.
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return "????-??-?? ??:??"
    return dt_utc.strftime("%Y-%m-%d %H:%M")
