"""Time helpers shared by storage, server and client."""

from __future__ import annotations

from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


def parse_date_maybe(value: str | None) -> datetime | None:
    """Parse a calendar day or ISO timestamp, returning None when empty or invalid.

    Naive values are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def day_string(value: datetime | date | None) -> str:
    """Format as ``YYYY-MM-DD`` (UTC calendar day), empty string when absent."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date().isoformat()
    return value.isoformat()


def iso_timestamp(value: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def to_db(value: datetime | None) -> str | None:
    """Serialize a datetime for a TEXT column."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def from_db(value: str | None) -> datetime | None:
    """Parse a TEXT column written by :func:`to_db`."""
    if not value:
        return None
    return parse_date_maybe(str(value))
