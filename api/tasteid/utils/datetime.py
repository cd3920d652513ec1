"""Datetime helpers for review timestamps and album release dates."""

from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive timestamp, matching stored values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Drop timezone info after converting aware timestamps to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: str | None) -> date | None:
    """Parse YYYY, YYYY-MM, or YYYY-MM-DD strings into dates."""
    if not value:
        return None
    try:
        if len(value) == 4:
            return date.fromisoformat(f"{value}-01-01")
        if len(value) == 7:
            return date.fromisoformat(f"{value}-01")
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def release_year(value: date | datetime | str | None) -> int | None:
    """Return the release year, or None when no date is recorded.

    Raises ValueError when a value is present but cannot be read as a date.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.year
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        parsed = parse_date(stripped)
        if parsed is None:
            raise ValueError(f"Unreadable release date: {value!r}")
        return parsed.year
    raise ValueError(f"Unsupported release date type: {type(value).__name__}")


def decade_label(year: int) -> str:
    """Bucket a year into its decade label, e.g. 1994 -> '1990s'."""
    return f"{(year // 10) * 10}s"
