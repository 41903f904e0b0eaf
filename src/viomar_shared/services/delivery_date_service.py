"""
Delivery and quotation-expiry dates derived from item lead times.

Dates are local calendar days formatted as ``YYYY-MM-DD``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from ..constants import (
    ADDITIONS_EXTRA_DAYS,
    DEFAULT_EXPIRY_EXTRA_DAYS,
    DEFAULT_LEAD_DAYS,
    NEGOTIATION_ALIASES,
    NEGOTIATION_LEAD_DAYS,
)
from ..datetime_utils import add_days, parse_date_only, to_date_only


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _to_non_negative_int(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, round(number))


def normalize_negotiation(value: Any) -> str:
    raw = str(value if value is not None else "").strip().upper()
    return NEGOTIATION_ALIASES.get(raw, raw)


def lead_days(item: Any) -> int:
    """Lead time in days for one item; never below 1."""
    negotiation = normalize_negotiation(_field(item, "negotiation"))
    base_days = NEGOTIATION_LEAD_DAYS.get(negotiation, DEFAULT_LEAD_DAYS)

    additions = _field(item, "additions")
    additions_count = len(additions) if isinstance(additions, (list, tuple)) else 0
    additions_days = ADDITIONS_EXTRA_DAYS if additions_count > 0 else 0

    return max(1, _to_non_negative_int(base_days + additions_days))


def max_lead_days(items: Iterable[Any] | None) -> int:
    if not items:
        return 0
    return max((lead_days(item) for item in items), default=0)


def delivery_date(items: Iterable[Any] | None, from_date: date | None = None) -> str | None:
    """``from_date`` (today by default) plus the longest item lead time."""
    items = list(items or [])
    days = max_lead_days(items)
    if days <= 0:
        return None
    return to_date_only(add_days(from_date or date.today(), days))


def expiry_date(
    delivery: str | None, extra_days: int | None = DEFAULT_EXPIRY_EXTRA_DAYS
) -> str | None:
    """
    Quotation expiry: the delivery date plus ``extra_days`` (negative values
    count as 0). None when the delivery date is absent or malformed.
    """
    parsed = parse_date_only(delivery)
    if parsed is None:
        return None
    if extra_days is None:
        extra_days = DEFAULT_EXPIRY_EXTRA_DAYS
    return to_date_only(add_days(parsed, _to_non_negative_int(extra_days)))
