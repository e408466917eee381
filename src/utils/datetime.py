# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for ScribeSignal.

Writing telemetry arrives from browsers in many shapes (naive local
timestamps, offset-aware ISO strings). Every comparison the analysis
pipeline makes (session windows, style-check throttling, due-date
proximity) must be done between timezone-aware UTC datetimes, so all
timestamps pass through these helpers before they are compared.

Usage:
------
    from src.utils.datetime import utc_now, ensure_utc

    last_check = ensure_utc(session.last_style_check)
    elapsed = (utc_now() - last_check).total_seconds()
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from start to end.

    Args:
        start: Earlier datetime (naive values are treated as UTC).
        end: Later datetime (naive values are treated as UTC).

    Returns:
        Hours elapsed, negative if end precedes start.
    """
    delta = ensure_utc(end) - ensure_utc(start)  # type: ignore[operator]
    return delta.total_seconds() / 3600


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()  # type: ignore[union-attr]
