"""
Settlement Queries Module
=========================

Glue between the data-access store and the pure settlement core. Each
method loads a fresh snapshot, runs the pure computations and returns plain
dictionaries for the API layer.

Classes:
    SettlementQueries: Static methods behind the settlement endpoints.

Example:
    Monthly report for the current member's session::

        from apps.settlement.services import SettlementQueries

        store = DjangoLedgerStore(session)
        data = SettlementQueries.period_report(store, Period.parse('2025-02'))
        print(data['meal_rate'], len(data['ledger']))

Note:
    Nothing here caches. Callers recompute on every request or change event;
    the computations are cheap and idempotent.
"""

from django.conf import settings

from .aggregates import fetch_global_aggregates
from .exceptions import InvalidMealChartDateError
from .formatters import DEFAULT_TZ, month_bounds, next_calendar_day, parse_iso_date, today_in_tz
from .ledger import display_name, summarize_member
from .rates import ZERO, to_decimal
from .meal_chart import DEFAULT_CUTOFF_HOUR, DEFAULT_WINDOW_DAYS, resolve_meal_chart, window_start
from .reports import Period, build_period_report, format_count
from .snapshots import load_snapshot

FALLBACK_WARNING = 'Global totals may be incomplete: only records visible to you were counted.'


def _newest_first(records):
    return sorted(records, key=lambda r: (r.date, str(r.id)), reverse=True)


def mess_timezone():
    return getattr(settings, 'MESS_TIMEZONE', DEFAULT_TZ)


class SettlementQueries:
    """
    Read-side settlement operations over a ``LedgerStore``.

    Methods:
        global_aggregates: Totals, meal rate and pool remaining.
        member_report: One member's all-time position plus their records.
        period_report: All-time or monthly report.
        meal_chart: Carry-forward dinner/lunch chart for a dinner date.
    """

    @staticmethod
    def global_aggregates(store):
        """
        Totals across all members.

        Returns:
            dict: total_meals, total_bazar_cost, total_deposits, total_members,
            meal_rate, pool_remaining, used_fallback and a warning when the
            visibility-limited fallback was used.

        Raises:
            DataAccessError: If the fallback reads fail too.
        """
        aggregate = fetch_global_aggregates(store)
        return {
            'total_meals': aggregate.total_meals,
            'total_bazar_cost': aggregate.total_bazar_cost,
            'total_deposits': aggregate.total_deposits,
            'total_members': aggregate.total_members,
            'meal_rate': aggregate.meal_rate,
            'pool_remaining': aggregate.pool_remaining,
            'used_fallback': aggregate.used_fallback,
            'warning': FALLBACK_WARNING if aggregate.used_fallback else '',
        }

    @staticmethod
    def member_report(store, member_id):
        """
        One member's all-time stats priced at the global meal rate.

        The member's own records are listed newest first.

        Args:
            store: A ``LedgerStore``.
            member_id: The member to report on.

        Returns:
            dict: member, summary figures, global figures and record lists,
            or None if the member does not exist.
        """
        aggregate = fetch_global_aggregates(store)
        snapshot = load_snapshot(store, member_id=member_id)
        member = next((m for m in snapshot.members if str(m.id) == str(member_id)), None)
        if member is None:
            return None

        summary = summarize_member(snapshot.meals, snapshot.bazar, snapshot.deposits, aggregate.meal_rate)
        return {
            'member': {
                'id': member.id,
                'name': display_name(member),
                'email': member.email,
                'phone': member.phone,
                'has_account': member.has_account,
            },
            'total_meals': summary.meals,
            'total_bazar_cost': summary.bazar_cost,
            'total_deposits': summary.deposits,
            'meal_rate': summary.meal_rate,
            'fair_share': summary.fair_share,
            'net_balance': summary.net_balance,
            'global_total_meals': aggregate.total_meals,
            'global_total_bazar_cost': aggregate.total_bazar_cost,
            'pool_remaining': aggregate.pool_remaining,
            'used_fallback': aggregate.used_fallback,
            'warning': FALLBACK_WARNING if aggregate.used_fallback else '',
            'meals': [
                {'id': r.id, 'date': r.date, 'meal_count': r.meal_count}
                for r in _newest_first(snapshot.meals)
            ],
            'bazar': [
                {'id': r.id, 'date': r.date, 'item_name': r.item_name, 'cost': r.cost, 'paid_from': r.paid_from}
                for r in _newest_first(snapshot.bazar)
            ],
            'deposits': [
                {'id': r.id, 'date': r.date, 'amount': r.amount}
                for r in _newest_first(snapshot.deposits)
            ],
        }

    @staticmethod
    def period_report(store, period: Period):
        """
        Report for one period.

        All-time reports take the meal rate from the global aggregate
        fetcher (and carry its ``used_fallback`` flag). Monthly reports are
        self-contained: their rate comes from that month's records only.
        All-time reports also carry the bazar spent so far this calendar
        month (``current_month_bazar_cost``); monthly reports leave it None.

        Args:
            store: A ``LedgerStore``.
            period: ``Period.all_time()`` or a calendar month.

        Returns:
            dict: Period bounds, totals, rate, ledger rows, meal pivot and
            the bazar/deposit line lists.
        """
        date_from, date_to = period.date_range
        if period.is_all_time:
            aggregate = fetch_global_aggregates(store)
            rate, used_fallback = aggregate.meal_rate, aggregate.used_fallback
        else:
            rate, used_fallback = None, False

        snapshot = load_snapshot(store, date_from=date_from, date_to=date_to)
        report = build_period_report(snapshot, period, meal_rate=rate, used_fallback=used_fallback)

        if period.is_all_time:
            today = today_in_tz(mess_timezone())
            month_start, month_end = month_bounds(today.year, today.month)
            current_month_bazar_cost = sum(
                (to_decimal(r.cost) for r in snapshot.bazar if month_start <= r.date <= month_end), ZERO
            )
        else:
            current_month_bazar_cost = None

        pivot = report.pivot
        return {
            'period': period.label,
            'date_from': report.date_from,
            'date_to': report.date_to,
            'total_meals': report.total_meals,
            'total_bazar_cost': report.total_bazar_cost,
            'total_deposits': report.total_deposits,
            'meal_rate': report.meal_rate,
            'pool_remaining': report.pool_remaining,
            'current_month_bazar_cost': current_month_bazar_cost,
            'used_fallback': report.used_fallback,
            'warning': FALLBACK_WARNING if report.used_fallback else '',
            'ledger': report.ledger,
            'pivot': {
                'members': [{'id': m.id, 'name': display_name(m)} for m in pivot.members],
                'rows': [
                    {'date': row['date'], 'counts': [format_count(value) for value in row['counts']]}
                    for row in pivot.rows()
                ],
            },
            'bazar': report.bazar_lines,
            'deposits': report.deposit_lines,
        }

    @staticmethod
    def meal_chart(store, dinner_date=None):
        """
        Carry-forward chart for ``dinner_date`` (default: today in the mess timezone).

        Raises:
            InvalidMealChartDateError: If ``dinner_date`` is not a calendar date.
        """
        tz = mess_timezone()
        window_days = getattr(settings, 'MEAL_CHART_WINDOW_DAYS', DEFAULT_WINDOW_DAYS)
        cutoff_hour = getattr(settings, 'MEAL_LATE_CUTOFF_HOUR', DEFAULT_CUTOFF_HOUR)

        try:
            dinner = parse_iso_date(dinner_date) if dinner_date else today_in_tz(tz)
            date_from = window_start(dinner, window_days)
            date_to = next_calendar_day(dinner)
        except (ValueError, OverflowError):
            # Window or lunch day would fall outside the supported date range
            raise InvalidMealChartDateError("Invalid dinner_date. Use YYYY-MM-DD")

        snapshot = load_snapshot(
            store,
            date_from=date_from,
            date_to=date_to,
            tables=('meals',),
        )
        return resolve_meal_chart(
            snapshot.members,
            snapshot.meals,
            dinner,
            cutoff_hour=cutoff_hour,
            tz=tz,
            window_days=window_days,
        )
