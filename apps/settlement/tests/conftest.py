import itertools
from datetime import date
from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.ledger.models import BazarRecord, DepositRecord, MealRecord, PaidFrom
from apps.members.session import resolve_session
from apps.settlement.exceptions import AggregateUnavailableError, DataAccessError
from apps.settlement.records import BazarEntry, DepositEntry, MealEntry, MemberSnapshot


class FakeStore:
    """
    In-memory ``LedgerStore``.

    ``visible_member`` limits record reads to one member, the way a
    restricted session would. ``privileged`` toggles the aggregate call;
    ``fail_on`` names reads that raise ``DataAccessError``.
    """

    def __init__(self, members=(), meals=(), bazar=(), deposits=(),
                 privileged=True, visible_member=None, fail_on=()):
        self.members = list(members)
        self.meals = list(meals)
        self.bazar = list(bazar)
        self.deposits = list(deposits)
        self.privileged = privileged
        self.visible_member = visible_member
        self.fail_on = set(fail_on)
        self.calls = []

    def _read(self, name, rows, member_id=None, date_from=None, date_to=None):
        self.calls.append((name, member_id, date_from, date_to))
        if name in self.fail_on:
            raise DataAccessError(f"Could not load {name}")
        result = []
        for row in rows:
            if self.visible_member is not None and row.member_id != self.visible_member:
                continue
            if member_id is not None and row.member_id != member_id:
                continue
            if date_from is not None and row.date < date_from:
                continue
            if date_to is not None and row.date > date_to:
                continue
            result.append(row)
        return result

    def get_members(self):
        self.calls.append(('members', None, None, None))
        if 'members' in self.fail_on:
            raise DataAccessError("Could not load members")
        return list(self.members)

    def get_meals(self, member_id=None, date_from=None, date_to=None):
        return self._read('meals', self.meals, member_id, date_from, date_to)

    def get_bazar(self, member_id=None, date_from=None, date_to=None):
        return self._read('bazar', self.bazar, member_id, date_from, date_to)

    def get_deposits(self, member_id=None, date_from=None, date_to=None):
        return self._read('deposits', self.deposits, member_id, date_from, date_to)

    def get_global_aggregates(self):
        if not self.privileged:
            raise AggregateUnavailableError("Privileged aggregates are disabled")
        return {
            'total_meals': sum((m.meal_count for m in self.meals), Decimal('0')),
            'total_bazar': sum((b.cost for b in self.bazar), Decimal('0')),
            'total_deposits': sum((d.amount for d in self.deposits), Decimal('0')),
            'total_members': len(self.members),
        }


_ids = itertools.count(1)


def meal(member_id, day, count, created_at=None, id=None):
    return MealEntry(
        id=id if id is not None else next(_ids),
        member_id=member_id,
        date=date.fromisoformat(day) if isinstance(day, str) else day,
        meal_count=Decimal(str(count)),
        created_at=created_at,
    )


def bazar(member_id, day, cost, item_name='Rice', paid_from='box', id=None):
    return BazarEntry(
        id=id if id is not None else next(_ids),
        member_id=member_id,
        item_name=item_name,
        cost=Decimal(str(cost)),
        date=date.fromisoformat(day) if isinstance(day, str) else day,
        paid_from=paid_from,
    )


def deposit(member_id, day, amount, id=None):
    return DepositEntry(
        id=id if id is not None else next(_ids),
        member_id=member_id,
        amount=Decimal(str(amount)),
        date=date.fromisoformat(day) if isinstance(day, str) else day,
    )


@pytest.fixture
def member_a():
    return MemberSnapshot(id='a', name='Alice', email='alice@example.com')


@pytest.fixture
def member_b():
    return MemberSnapshot(id='b', name='Bob', email='bob@example.com')


@pytest.fixture
def two_member_month(member_a, member_b):
    """A=10 meals, B=20 meals, 300 of bazar, 150 deposited each, all in Feb 2025."""
    return FakeStore(
        members=[member_b, member_a],
        meals=[
            meal('a', '2025-02-01', 4),
            meal('a', '2025-02-10', 6),
            meal('b', '2025-02-01', 8),
            meal('b', '2025-02-15', 12),
        ],
        bazar=[
            bazar('a', '2025-02-02', 120, item_name='Fish'),
            bazar('b', '2025-02-05', 180, item_name='Rice'),
        ],
        deposits=[
            deposit('a', '2025-02-01', 150),
            deposit('b', '2025-02-01', 150),
        ],
    )


# =============================================================================
# Database fixtures
# =============================================================================

@pytest.fixture
def alice_session(db):
    user = User.objects.create_user(email='alice@example.com', password='TestPass123!', display_name='Alice')
    return resolve_session(user)


@pytest.fixture
def bob_session(db):
    user = User.objects.create_user(email='bob@example.com', password='TestPass123!', display_name='Bob')
    return resolve_session(user)


@pytest.fixture
def alice_client(alice_session):
    client = APIClient()
    refresh = RefreshToken.for_user(alice_session.user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def february(alice_session, bob_session):
    """
    Alice: 10 meals, 120 bazar from the box, 150 deposited.
    Bob: 20 meals, 180 bazar from his own pocket (linked deposit).
    """
    alice, bob = alice_session.member, bob_session.member
    MealRecord.objects.create(member=alice, date=date(2025, 2, 1), meal_count=Decimal('4'))
    MealRecord.objects.create(member=alice, date=date(2025, 2, 10), meal_count=Decimal('6'))
    MealRecord.objects.create(member=bob, date=date(2025, 2, 1), meal_count=Decimal('8'))
    MealRecord.objects.create(member=bob, date=date(2025, 2, 15), meal_count=Decimal('12'))
    BazarRecord.objects.create(member=alice, item_name='Fish', cost=Decimal('120'), date=date(2025, 2, 2))
    linked = DepositRecord.objects.create(member=bob, amount=Decimal('180'), date=date(2025, 2, 5))
    BazarRecord.objects.create(
        member=bob, item_name='Rice', cost=Decimal('180'), date=date(2025, 2, 5),
        paid_from=PaidFrom.USER, linked_deposit=linked,
    )
    DepositRecord.objects.create(member=alice, amount=Decimal('150'), date=date(2025, 2, 1))
    return alice_session, bob_session
