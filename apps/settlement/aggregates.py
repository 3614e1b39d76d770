"""
Global aggregate fetcher.

Totals used for the meal rate must cover every member, not just the rows the
current viewer may read. The fetcher therefore prefers the store's privileged
aggregate operation and only falls back to summing visible rows when that
operation is unavailable.

The fallback is a known degradation, not an error: when row visibility is
restricted the totals (and the rate) reflect only what the viewer can see.
Callers read ``used_fallback`` to warn users.

Example:
    Dashboard totals::

        aggregate = fetch_global_aggregates(store)
        if aggregate.used_fallback:
            warnings.append('Global totals may be incomplete.')
        print(aggregate.meal_rate, aggregate.pool_remaining)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from .exceptions import DataAccessError
from .rates import ZERO, meal_rate, pool_remaining, to_decimal
from .snapshots import load_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalAggregate:
    total_meals: Decimal
    total_bazar_cost: Decimal
    total_deposits: Decimal
    total_members: int
    meal_rate: Decimal
    used_fallback: bool

    @property
    def pool_remaining(self) -> Decimal:
        return pool_remaining(self.total_deposits, self.total_bazar_cost)

    @classmethod
    def from_totals(cls, total_meals, total_bazar_cost, total_deposits, total_members, used_fallback):
        total_meals = to_decimal(total_meals)
        total_bazar_cost = to_decimal(total_bazar_cost)
        return cls(
            total_meals=total_meals,
            total_bazar_cost=total_bazar_cost,
            total_deposits=to_decimal(total_deposits),
            total_members=int(total_members or 0),
            meal_rate=meal_rate(total_bazar_cost, total_meals),
            used_fallback=used_fallback,
        )


def fetch_global_aggregates(store) -> GlobalAggregate:
    """
    Fetch totals across all members.

    Args:
        store: A data-access store (see ``apps.settlement.store.LedgerStore``).

    Returns:
        GlobalAggregate: Totals, meal rate and which path produced them.

    Raises:
        DataAccessError: If the fallback reads fail. A failure of the
            privileged call alone is not raised; it triggers the fallback.
    """
    try:
        totals = store.get_global_aggregates()
    except DataAccessError as exc:
        logger.warning("Privileged aggregates unavailable, summing visible rows: %s", exc)
    else:
        return GlobalAggregate.from_totals(
            totals.get('total_meals'),
            totals.get('total_bazar'),
            totals.get('total_deposits'),
            totals.get('total_members'),
            used_fallback=False,
        )

    snapshot = load_snapshot(store)

    return GlobalAggregate.from_totals(
        sum((to_decimal(r.meal_count) for r in snapshot.meals), ZERO),
        sum((to_decimal(r.cost) for r in snapshot.bazar), ZERO),
        sum((to_decimal(r.amount) for r in snapshot.deposits), ZERO),
        len(snapshot.members),
        used_fallback=True,
    )
