"""Timestamp helpers for persisted documents.

All documents written by winupctl use ISO 8601 timestamps with an explicit
UTC offset. Documents written by older tooling may carry naive local
timestamps ("2025-03-01 14:30:00"); those are interpreted in local time.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Return the current time as an ISO 8601 string with UTC offset."""
    return utc_now().isoformat()


def parse_timestamp(value: object) -> datetime | None:
    """Parse a persisted timestamp into an aware datetime.

    Args:
        value: ISO 8601 string, optionally ending in "Z" or without offset.

    Returns:
        Aware datetime, or None if the value cannot be parsed.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        # Naive values are local wall-clock time
        parsed = parsed.astimezone()
    return parsed


def format_timestamp(value: str) -> str:
    """Format a persisted timestamp for display (YYYY-MM-DD HH:MM).

    Unparseable values are returned unchanged.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M")
