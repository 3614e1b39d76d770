"""
Snapshot records consumed by the settlement core.

The data-access store converts ORM rows into these frozen dataclasses so that
every computation in this app runs on plain values and never touches the
database.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class MemberSnapshot:
    id: object
    name: str = ''
    email: str = ''
    phone: str = ''
    has_account: bool = True


@dataclass(frozen=True)
class MealEntry:
    id: object
    member_id: object
    date: date
    meal_count: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BazarEntry:
    id: object
    member_id: object
    item_name: str
    cost: Decimal
    date: date
    paid_from: str = 'box'


@dataclass(frozen=True)
class DepositEntry:
    id: object
    member_id: object
    amount: Decimal
    date: date


@dataclass(frozen=True)
class LedgerSnapshot:
    """Input set for one recomputation: everything fetched for a scope."""

    members: List[MemberSnapshot] = field(default_factory=list)
    meals: List[MealEntry] = field(default_factory=list)
    bazar: List[BazarEntry] = field(default_factory=list)
    deposits: List[DepositEntry] = field(default_factory=list)
