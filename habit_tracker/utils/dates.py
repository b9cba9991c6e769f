"""
Calendar-day normalization shared by the streak and statistics code.

Every date that enters the system goes through ``to_calendar_day``: time of
day and UTC offsets are dropped (not converted), so ``2024-01-05T23:30:00-05:00``
is the calendar day 2024-01-05.
"""
from __future__ import annotations
import calendar
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import InvalidInput


def to_calendar_day(value: Any) -> date:
    """Normalize a date, datetime or ISO-8601 string to a calendar day."""
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidInput(f"Not an ISO-8601 date: {value!r}") from None
    raise InvalidInput(f"Not a date: {value!r}")


def normalize_dates(values: Iterable[Any]) -> List[date]:
    """De-duplicated, ascending calendar days."""
    if values is None:
        return []
    # A lone date or string is a caller mistake, not a collection of days
    if isinstance(values, (str, bytes, date)):
        raise InvalidInput(f"Expected a collection of dates, got a single value: {values!r}")
    try:
        items = iter(values)
    except TypeError:
        raise InvalidInput(f"Expected a collection of dates, got {type(values).__name__}") from None
    return sorted({to_calendar_day(v) for v in items})


def to_iso(day: date) -> str:
    return day.isoformat()


def days_in_month(year: int, month: int) -> int:
    if not 1 <= year <= 9999:
        raise InvalidInput(f"Year out of range: {year}")
    if not 1 <= month <= 12:
        raise InvalidInput(f"Month must be between 1 and 12, got {month}")
    return calendar.monthrange(year, month)[1]


def today_in_zone(tz_name: Optional[str]) -> date:
    """
    Current calendar day in the given IANA zone.
    Falls back to UTC when tz_name is empty or unknown.
    """
    now_utc = datetime.now(timezone.utc)
    if not tz_name:
        return now_utc.date()
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return now_utc.date()
    return now_utc.astimezone(zone).date()
