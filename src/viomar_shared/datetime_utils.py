"""
Datetime helpers.

The store keeps naive UTC timestamps; API payloads use ISO strings and
calendar dates as ``YYYY-MM-DD``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def utcnow_naive() -> datetime:
    """Current UTC time without tzinfo, the shape stored in DateTime columns."""
    return utcnow().replace(tzinfo=None)


def to_date_only(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_date_only(value: str | None) -> date | None:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored); None when malformed."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def isoformat_or_none(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()
