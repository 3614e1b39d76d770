"""
Per-member ledger builder.

Joins members with their summed meals and deposits for one scope (all-time or
a calendar month) and applies the meal rate of that same scope.

Example:
    Two members, 300 taka of bazar over 30 meals::

        rows = build_ledger(members, meals, deposits, rate=Decimal('10'))
        # A: meals=10, deposits=150, fair_share=100, net_balance=+50
        # B: meals=20, deposits=150, fair_share=200, net_balance=-50
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from .rates import ZERO, fair_share, net_balance, to_decimal
from .records import DepositEntry, MealEntry, MemberSnapshot

UNNAMED_LABEL = 'Unnamed'
UNKNOWN_LABEL = 'Unknown'


@dataclass(frozen=True)
class LedgerRow:
    member_id: object
    name: str
    meals: Decimal
    deposits: Decimal
    fair_share: Decimal
    net_balance: Decimal


def display_name(member: MemberSnapshot) -> str:
    """Name if present, else email, else a placeholder."""
    return member.name or member.email or UNNAMED_LABEL


def sort_members(members: Iterable[MemberSnapshot]) -> List[MemberSnapshot]:
    # Plain str ordering: case-sensitive, ascending
    return sorted(members, key=display_name)


def sum_meals_by_member(meals: Iterable[MealEntry]) -> Dict[object, Decimal]:
    totals = defaultdict(lambda: ZERO)
    for record in meals:
        totals[record.member_id] += to_decimal(record.meal_count)
    return dict(totals)


def sum_deposits_by_member(deposits: Iterable[DepositEntry]) -> Dict[object, Decimal]:
    totals = defaultdict(lambda: ZERO)
    for record in deposits:
        totals[record.member_id] += to_decimal(record.amount)
    return dict(totals)


def build_ledger(
    members: Iterable[MemberSnapshot],
    meals: Iterable[MealEntry],
    deposits: Iterable[DepositEntry],
    rate,
) -> List[LedgerRow]:
    """
    Build one ledger row per member, ordered by display name.

    Members without activity still get a row with zeros. Records whose
    member is not in ``members`` are ignored so they cannot inflate any row.

    Args:
        members: All members of the mess.
        meals: Meal records already scoped to the period.
        deposits: Deposit records already scoped to the period.
        rate: Meal rate computed for the same period.

    Returns:
        list[LedgerRow]: Sorted ledger rows.
    """
    meals_by_member = sum_meals_by_member(meals)
    deposits_by_member = sum_deposits_by_member(deposits)
    rate = to_decimal(rate)

    rows = []
    for member in sort_members(members):
        member_meals = meals_by_member.get(member.id, ZERO)
        member_deposits = deposits_by_member.get(member.id, ZERO)
        share = fair_share(member_meals, rate)
        rows.append(LedgerRow(
            member_id=member.id,
            name=display_name(member),
            meals=member_meals,
            deposits=member_deposits,
            fair_share=share,
            net_balance=net_balance(member_deposits, share),
        ))
    return rows


@dataclass(frozen=True)
class MemberSummary:
    """One member's all-time position, priced at the global meal rate."""

    meals: Decimal
    bazar_cost: Decimal
    deposits: Decimal
    meal_rate: Decimal
    fair_share: Decimal
    net_balance: Decimal


def summarize_member(meals, bazar, deposits, rate) -> MemberSummary:
    """Totals of one member's own records; ``rate`` must be the global one."""
    total_meals = sum((to_decimal(r.meal_count) for r in meals), ZERO)
    total_bazar = sum((to_decimal(r.cost) for r in bazar), ZERO)
    total_deposits = sum((to_decimal(r.amount) for r in deposits), ZERO)
    rate = to_decimal(rate)
    share = fair_share(total_meals, rate)
    return MemberSummary(
        meals=total_meals,
        bazar_cost=total_bazar,
        deposits=total_deposits,
        meal_rate=rate,
        fair_share=share,
        net_balance=net_balance(total_deposits, share),
    )
