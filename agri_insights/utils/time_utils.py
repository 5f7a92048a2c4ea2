"""
Date and time helpers shared by the analytics core.

Key conventions:
  - All datetimes inside the core are timezone-aware UTC. Naive values coming
    from the store are interpreted as UTC by ``ensure_utc``.
  - A missing or unparseable timestamp is represented as ``None`` on the value
    types and as ``EPOCH`` wherever an ordering key is needed.
  - "Now" is never read implicitly: every function takes an explicit
    reference datetime.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_datetime(value: date | datetime) -> datetime:
    """Promote a ``date`` to midnight UTC; normalise a ``datetime`` to UTC."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of a store timestamp to an aware UTC datetime.

    Accepts ``datetime``, ``date``, ISO 8601 strings (trailing ``Z`` allowed)
    and epoch milliseconds. Anything else, including empty strings, NaN and
    out-of-range numbers, yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return as_datetime(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Floor of the day difference ``later - earlier`` (negative if reversed)."""
    seconds = (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
    return math.floor(seconds / SECONDS_PER_DAY)


def age_in_years(since: datetime, reference: datetime) -> float:
    """Fractional years elapsed from ``since`` to ``reference`` (365-day years)."""
    seconds = (ensure_utc(reference) - ensure_utc(since)).total_seconds()
    return seconds / (SECONDS_PER_DAY * DAYS_PER_YEAR)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return ``(year, month)`` moved by ``delta`` calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_window(reference: date | datetime, months: int) -> list[tuple[int, int]]:
    """The ``months`` consecutive ``(year, month)`` pairs ending at ``reference``.

    Returned oldest first.
    """
    return [
        shift_month(reference.year, reference.month, -offset)
        for offset in range(months - 1, -1, -1)
    ]


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Only the CLI calls this; the analytics core receives "now" explicitly.
    """
    return datetime.now(tz=timezone.utc)
