"""Time utilities for UTC timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_utc(value: str) -> datetime:
    """
    Parse an ISO 8601 string into an aware UTC datetime.

    A trailing 'Z' is accepted. Naive input is interpreted as UTC.

    Raises:
        ValueError: If the string is not ISO 8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC for storage comparisons (SQLite stores naive)."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def as_aware_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to a naive datetime read back from storage."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
