"""Timestamp helpers for ledger and checkpoint records."""

from datetime import datetime, timezone

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts ISO 8601 strings (with or without offset) and SQLite's
    ``YYYY-MM-DD HH:MM:SS`` form. Naive values are taken to be UTC.

    Args:
        value: Timestamp string, datetime, or None.

    Returns:
        Aware datetime, or None if value is empty.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.isoparse(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as an ISO 8601 UTC string for storage."""
    return parse_timestamp(value).isoformat(timespec="seconds")


def hours_between(earlier: datetime, later: datetime | None = None) -> float:
    """Elapsed hours from ``earlier`` to ``later`` (default: now)."""
    later = later or utc_now()
    return (parse_timestamp(later) - parse_timestamp(earlier)).total_seconds() / 3600.0


def format_duration(seconds: float) -> str:
    """Render a duration as ``1h 2m 3s`` for progress logs."""
    total = max(int(round(seconds)), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"
