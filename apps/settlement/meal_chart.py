"""
Meal-chart carry-forward resolver.

The chart shows, for a chosen dinner date D, what each member eats for
dinner on D and for lunch on D + 1. A member's value for a target date is
the latest meal record dated on or before that date (carry-forward), not a
sum. Members with no record inside the trailing window resolve to 0.

Each resolved cell carries the id and date of the record it came from, so
edits and deletes can act on that record instead of creating a new one.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .formatters import DEFAULT_TZ, as_aware, days_before, is_after_hour_in_tz, next_calendar_day, parse_iso_date
from .ledger import display_name, sort_members
from .rates import ZERO, to_decimal
from .records import MealEntry, MemberSnapshot

DEFAULT_WINDOW_DAYS = 30
DEFAULT_CUTOFF_HOUR = 18

NO_TIMESTAMP = datetime.min.replace(tzinfo=dt_timezone.utc)


@dataclass(frozen=True)
class ResolvedMeal:
    value: Decimal
    late: bool
    source_date: Optional[date]
    record_id: object
    late_at: Optional[datetime]


@dataclass(frozen=True)
class MealChartRow:
    member_id: object
    name: str
    dinner: ResolvedMeal
    lunch: ResolvedMeal


@dataclass(frozen=True)
class MealChart:
    dinner_date: date
    lunch_date: date
    window_start: date
    rows: List[MealChartRow]

    @property
    def total_dinner(self) -> Decimal:
        return sum((row.dinner.value for row in self.rows), ZERO)

    @property
    def total_lunch(self) -> Decimal:
        return sum((row.lunch.value for row in self.rows), ZERO)

    @property
    def total(self) -> Decimal:
        return self.total_dinner + self.total_lunch


EMPTY = ResolvedMeal(value=ZERO, late=False, source_date=None, record_id=None, late_at=None)


def window_start(dinner_date, window_days: int = DEFAULT_WINDOW_DAYS) -> date:
    """First date fetched for the chart; older records are not considered."""
    return days_before(dinner_date, window_days)


def _record_order(record: MealEntry):
    # Same-date records: missing created_at first, then oldest to newest
    if record.created_at is None:
        return (record.date, 0, NO_TIMESTAMP)
    return (record.date, 1, as_aware(record.created_at))


def group_by_member(meals: Iterable[MealEntry]) -> Dict[object, List[MealEntry]]:
    grouped = defaultdict(list)
    for record in meals:
        grouped[record.member_id].append(record)
    for records in grouped.values():
        records.sort(key=_record_order)
    return dict(grouped)


def latest_on_or_before(records: List[MealEntry], target: date) -> Optional[MealEntry]:
    """Walk back from the newest record; ``records`` must already be sorted."""
    for record in reversed(records):
        if record.date <= target:
            return record
    return None


def resolve_cell(
    records: List[MealEntry],
    target: date,
    cutoff_hour: int = DEFAULT_CUTOFF_HOUR,
    tz: str = DEFAULT_TZ,
) -> ResolvedMeal:
    record = latest_on_or_before(records, target)
    if record is None:
        return EMPTY
    late = is_after_hour_in_tz(record.created_at, cutoff_hour, tz)
    return ResolvedMeal(
        value=to_decimal(record.meal_count),
        late=late,
        source_date=record.date,
        record_id=record.id,
        late_at=record.created_at if late else None,
    )


def resolve_meal_chart(
    members: Iterable[MemberSnapshot],
    meals: Iterable[MealEntry],
    dinner_date,
    cutoff_hour: int = DEFAULT_CUTOFF_HOUR,
    tz: str = DEFAULT_TZ,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> MealChart:
    """
    Resolve dinner and lunch values for every member.

    Args:
        members: All members; each gets a row even without records.
        meals: Meal records; anything outside
            ``[dinner_date - window_days, dinner_date + 1]`` is ignored.
        dinner_date: The dinner date; lunch is the next calendar day.
        cutoff_hour: Records created strictly after this local hour are late.
        tz: Reference timezone for the late check.
        window_days: Trailing window size in days.

    Returns:
        MealChart: Rows sorted by display name plus dinner/lunch totals.
    """
    dinner = parse_iso_date(dinner_date)
    lunch = next_calendar_day(dinner)
    start = window_start(dinner, window_days)

    in_window = [r for r in meals if start <= r.date <= lunch]
    by_member = group_by_member(in_window)

    rows = []
    for member in sort_members(members):
        records = by_member.get(member.id, [])
        rows.append(MealChartRow(
            member_id=member.id,
            name=display_name(member),
            dinner=resolve_cell(records, dinner, cutoff_hour, tz),
            lunch=resolve_cell(records, lunch, cutoff_hour, tz),
        ))
    return MealChart(dinner_date=dinner, lunch_date=lunch, window_start=start, rows=rows)
