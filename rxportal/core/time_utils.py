from datetime import date, datetime, timezone
from typing import Optional, Union


def now_utc() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[Union[datetime, date, str]], now: Optional[datetime] = None) -> str:
    """Normalize a stored timestamp to ISO-8601.

    Null values fall back to ``now`` (or the current time). Naive datetimes are
    read as UTC, which is how SQLite hands back timezone-aware columns.
    """
    if value is None:
        value = now or now_utc()
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value.isoformat()


def parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_locale_date(value: str) -> str:
    """en-US short date, e.g. 3/7/2025"""
    parsed = parse_iso(value)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"
