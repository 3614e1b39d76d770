"""
Date and time helpers for the mess ledger.

All "calendar day" decisions are made in one fixed reference timezone
(``MESS_TIMEZONE``, Asia/Dhaka by default) so that a meal logged late in the
evening lands on the same day for every member regardless of where the
server runs. Pure date arithmetic (lunch date, month bounds) uses ``date``
objects only and is therefore independent of any timezone.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

DEFAULT_TZ = 'Asia/Dhaka'

DateLike = Union[date, datetime, str]


def parse_iso_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO string (``YYYY-MM-DD``, optionally followed
    by a time part) into a calendar date.

    Raises:
        ValueError: If the value cannot be read as a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        raise ValueError(f"Invalid date: {value!r}")
    return date.fromisoformat(value[:10])


def as_aware(moment: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt_timezone.utc)
    return moment


def to_local(moment: datetime, tz: str = DEFAULT_TZ) -> datetime:
    return as_aware(moment).astimezone(ZoneInfo(tz))


def date_to_input_value_in_tz(moment: Optional[datetime] = None, tz: str = DEFAULT_TZ) -> str:
    """Return ``YYYY-MM-DD`` for ``moment`` (default: now) as seen in ``tz``."""
    if moment is None:
        moment = datetime.now(dt_timezone.utc)
    return to_local(moment, tz).date().isoformat()


def today_in_tz(tz: str = DEFAULT_TZ) -> date:
    return to_local(datetime.now(dt_timezone.utc), tz).date()


def format_date_with_day(value) -> str:
    """Short label such as ``Mon, Feb 3, 2025``; blank for missing input."""
    if not value:
        return ''
    try:
        d = parse_iso_date(value)
    except ValueError:
        return ''
    return f"{d:%a}, {d:%b} {d.day}, {d.year}"


def format_time_in_tz(moment: Optional[datetime], tz: str = DEFAULT_TZ) -> str:
    if moment is None:
        return ''
    return to_local(moment, tz).strftime('%I:%M %p')


def is_after_hour_in_tz(moment: Optional[datetime], hour: int, tz: str = DEFAULT_TZ) -> bool:
    """
    True when the local time-of-day of ``moment`` is strictly after ``hour:00:00``.

    A submission at exactly the cutoff is on time; one second later is late.
    """
    if moment is None:
        return False
    return to_local(moment, tz).time() > time(hour)


def next_calendar_day(value: DateLike) -> date:
    """The day after ``value``; month, year and leap-day rollover included."""
    return parse_iso_date(value) + timedelta(days=1)


def days_before(value: DateLike, days: int) -> date:
    return parse_iso_date(value) - timedelta(days=days)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Inclusive first and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
