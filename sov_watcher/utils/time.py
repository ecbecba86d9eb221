"""
UTC timestamp utilities for SOV Watcher.

All timestamps MUST be in UTC with explicit timezone markers.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- session_id_from_timestamp(): Analysis session identifier

Examples:
    >>> from sov_watcher.utils.time import utc_now, utc_timestamp
    >>> now = utc_now()
    >>> now.tzinfo
    datetime.timezone.utc
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
"""

import secrets
from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Returns:
        datetime: Current UTC time with tzinfo=timezone.utc

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ (with colons in time)
    Example: 2025-11-02T08:30:45Z

    Returns:
        str: ISO 8601 formatted timestamp in UTC
    """
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def session_id_from_timestamp(dt: datetime | None = None) -> str:
    """
    Generate an analysis session identifier from a UTC timestamp.

    Format: analysis_YYYY-MM-DDTHH-MM-SSZ_<8 hex chars>

    The timestamp part sorts chronologically and is filesystem-safe (no
    colons); the random suffix keeps two calculations started in the same
    second apart.

    Args:
        dt: Optional datetime to use. If None, uses utc_now().
            Must be timezone-aware if provided.

    Returns:
        str: Session identifier

    Raises:
        ValueError: If dt is provided but is naive (missing timezone)

    Example:
        >>> from datetime import datetime, timezone
        >>> fixed = datetime(2025, 11, 2, 8, 30, 45, tzinfo=timezone.utc)
        >>> session_id_from_timestamp(fixed)[:29]
        'analysis_2025-11-02T08-30-45Z'
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use timezone.utc). "
            "Got naive datetime. Use utc_now() or ensure dt has tzinfo set."
        )

    return f"analysis_{dt.strftime('%Y-%m-%dT%H-%M-%SZ')}_{secrets.token_hex(4)}"

