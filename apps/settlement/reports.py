"""
Period Reporting Module
=======================

Builds the all-time or monthly report: scoped totals, meal rate, ledger,
a date x member meal pivot and the bazar/deposit line lists.

Each month is self-contained: its meal rate is computed from that month's
bazar and meals only. The all-time report takes the rate from the global
aggregate fetcher instead, so callers pass it in.

Classes:
    Period: All-time or one calendar month.
    MealPivot: Meal counts per (date, member), blank where nothing was logged.
    LedgerLine: One bazar or deposit row for listing.
    PeriodReport: Everything a report page renders.

Example:
    Report for February 2025::

        period = Period.parse('2025-02')
        report = build_period_report(snapshot, period)
        for row in report.ledger:
            print(row.name, row.fair_share, row.net_balance)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import InvalidPeriodError
from .formatters import month_bounds
from .ledger import UNKNOWN_LABEL, LedgerRow, build_ledger, display_name, sort_members
from .rates import ZERO, meal_rate as compute_meal_rate, pool_remaining, to_decimal
from .records import BazarEntry, LedgerSnapshot, MealEntry, MemberSnapshot


@dataclass(frozen=True)
class Period:
    """Reporting scope. ``year``/``month`` are both None for all-time."""

    year: Optional[int] = None
    month: Optional[int] = None

    @classmethod
    def all_time(cls) -> 'Period':
        return cls()

    @classmethod
    def of_month(cls, year: int, month: int) -> 'Period':
        if not 1 <= int(month) <= 12 or int(year) < 1:
            raise InvalidPeriodError(f"Invalid month: {year}-{month}")
        return cls(year=int(year), month=int(month))

    @classmethod
    def parse(cls, value: Optional[str]) -> 'Period':
        """Read ``YYYY-MM``; empty or ``None`` means all-time."""
        if not value:
            return cls.all_time()
        try:
            year, month = value.split('-')
            return cls.of_month(int(year), int(month))
        except (ValueError, AttributeError):
            raise InvalidPeriodError("Invalid period format. Use YYYY-MM")

    @property
    def is_all_time(self) -> bool:
        return self.year is None

    @property
    def label(self) -> str:
        if self.is_all_time:
            return 'all'
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def date_range(self) -> Tuple[Optional[date], Optional[date]]:
        if self.is_all_time:
            return None, None
        return month_bounds(self.year, self.month)

    def contains(self, day: date) -> bool:
        if self.is_all_time:
            return True
        first, last = self.date_range
        return first <= day <= last


@dataclass(frozen=True)
class MealPivot:
    dates: List[date]
    members: List[MemberSnapshot]
    cells: Dict[date, Dict[object, Decimal]] = field(default_factory=dict)

    def cell(self, day: date, member_id) -> Optional[Decimal]:
        """Summed meals, or None when the member logged nothing that day."""
        return self.cells.get(day, {}).get(member_id)

    def rows(self) -> List[dict]:
        return [
            {
                'date': day,
                'counts': [self.cell(day, member.id) for member in self.members],
            }
            for day in self.dates
        ]


@dataclass(frozen=True)
class LedgerLine:
    id: object
    date: date
    member_id: object
    member_name: str
    amount: Decimal
    item_name: str = ''
    paid_from: str = ''


@dataclass(frozen=True)
class PeriodReport:
    period: Period
    date_from: Optional[date]
    date_to: Optional[date]
    total_meals: Decimal
    total_bazar_cost: Decimal
    total_deposits: Decimal
    meal_rate: Decimal
    used_fallback: bool
    ledger: List[LedgerRow]
    pivot: MealPivot
    bazar_lines: List[LedgerLine]
    deposit_lines: List[LedgerLine]

    @property
    def pool_remaining(self) -> Decimal:
        return pool_remaining(self.total_deposits, self.total_bazar_cost)


def format_count(value: Optional[Decimal]) -> str:
    """Pivot cell text: blank for no record, ``0`` for an explicit zero."""
    if value is None:
        return ''
    value = to_decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


def filter_by_period(records: Iterable, period: Period) -> list:
    """Records whose ``date`` falls inside the period, both ends inclusive."""
    return [r for r in records if period.contains(r.date)]


def filter_snapshot(snapshot: LedgerSnapshot, period: Period) -> LedgerSnapshot:
    return LedgerSnapshot(
        members=list(snapshot.members),
        meals=filter_by_period(snapshot.meals, period),
        bazar=filter_by_period(snapshot.bazar, period),
        deposits=filter_by_period(snapshot.deposits, period),
    )


def build_meal_pivot(members: Iterable[MemberSnapshot], meals: Iterable[MealEntry]) -> MealPivot:
    """
    Pivot meal counts into rows of dates and columns of members.

    Unlike the meal chart, several records by one member on one day are
    summed here.
    """
    cells: Dict[date, Dict[object, Decimal]] = {}
    for record in meals:
        day_cells = cells.setdefault(record.date, {})
        day_cells[record.member_id] = day_cells.get(record.member_id, ZERO) + to_decimal(record.meal_count)
    return MealPivot(dates=sorted(cells), members=sort_members(members), cells=cells)


def _id_key(value):
    if isinstance(value, int):
        return (0, value, '')
    return (1, 0, str(value))


def sorted_lines(records: Iterable, members: Iterable[MemberSnapshot]) -> List[LedgerLine]:
    """
    Listing rows sorted by date, ties broken by record id.

    Records of unknown members get an "Unknown" label here; they are never
    counted in the ledger.
    """
    names = {member.id: display_name(member) for member in members}
    lines = []
    for record in records:
        if isinstance(record, BazarEntry):
            amount, item_name, paid_from = record.cost, record.item_name, record.paid_from
        else:
            amount, item_name, paid_from = record.amount, '', ''
        lines.append(LedgerLine(
            id=record.id,
            date=record.date,
            member_id=record.member_id,
            member_name=names.get(record.member_id, UNKNOWN_LABEL),
            amount=to_decimal(amount),
            item_name=item_name,
            paid_from=paid_from,
        ))
    lines.sort(key=lambda line: (line.date, _id_key(line.id)))
    return lines


def build_period_report(
    snapshot: LedgerSnapshot,
    period: Period,
    meal_rate=None,
    used_fallback: bool = False,
) -> PeriodReport:
    """
    Compute the full report for one period.

    Args:
        snapshot: Members and records; records outside the period are dropped.
        period: All-time or one calendar month.
        meal_rate: Rate to apply. When None, the rate is computed from the
            period's own bazar and meal totals.
        used_fallback: Whether ``meal_rate`` came from a visibility-limited
            aggregate; carried through to the report.

    Returns:
        PeriodReport: Totals, rate, ledger, pivot and line lists.
    """
    scoped = filter_snapshot(snapshot, period)
    total_meals = sum((to_decimal(r.meal_count) for r in scoped.meals), ZERO)
    total_bazar = sum((to_decimal(r.cost) for r in scoped.bazar), ZERO)
    total_deposits = sum((to_decimal(r.amount) for r in scoped.deposits), ZERO)

    if meal_rate is None:
        rate = compute_meal_rate(total_bazar, total_meals)
    else:
        rate = to_decimal(meal_rate)

    date_from, date_to = period.date_range
    return PeriodReport(
        period=period,
        date_from=date_from,
        date_to=date_to,
        total_meals=total_meals,
        total_bazar_cost=total_bazar,
        total_deposits=total_deposits,
        meal_rate=rate,
        used_fallback=used_fallback,
        ledger=build_ledger(scoped.members, scoped.meals, scoped.deposits, rate),
        pivot=build_meal_pivot(scoped.members, scoped.meals),
        bazar_lines=sorted_lines(scoped.bazar, scoped.members),
        deposit_lines=sorted_lines(scoped.deposits, scoped.members),
    )
