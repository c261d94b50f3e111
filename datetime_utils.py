from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_iso(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC."""

    if not s:
        return None
    value = str(s).strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ensure_utc(dt)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize to ISO-8601 in UTC with millisecond precision and ``Z``."""

    if dt is None:
        return None
    value = ensure_utc(dt)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def day_key(dt: datetime) -> str:
    """``YYYY-MM-DD`` of the UTC calendar day containing ``dt``."""

    return ensure_utc(dt).date().isoformat()


def previous_day_key(dt: datetime) -> str:
    return (ensure_utc(dt).date() - timedelta(days=1)).isoformat()


def hours_between(start: datetime, end: datetime) -> float:
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


def parse_day(s: Optional[str]) -> Optional[date]:
    if not s:
        return None
    try:
        return date.fromisoformat(str(s)[:10])
    except ValueError:
        return None


__all__ = [
    "UTC",
    "day_key",
    "ensure_utc",
    "hours_between",
    "parse_day",
    "parse_iso",
    "previous_day_key",
    "to_iso",
    "utc_now",
]
