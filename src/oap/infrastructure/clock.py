"""Café-local calendar helpers.

Pickup numbers restart and daily stats are cut on the café's calendar day,
which is not the UTC day unless CAFE_TIMEZONE says so.
"""

from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

DEFAULT_CURRENCY = "USD"


def cafe_timezone() -> tzinfo:
    name = os.getenv("CAFE_TIMEZONE", "UTC").strip() or "UTC"
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def cafe_currency() -> str:
    return (os.getenv("CAFE_CURRENCY", DEFAULT_CURRENCY).strip() or DEFAULT_CURRENCY).upper()


def cafe_today(now: datetime | None = None) -> date:
    current = now or datetime.now(timezone.utc)
    return current.astimezone(cafe_timezone()).date()


def day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    """Return the UTC instants ``[start, end)`` covering ``day`` in café time."""
    tz = cafe_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
