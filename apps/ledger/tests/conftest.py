import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.ledger.models import BazarRecord, DepositRecord, MealRecord, PaidFrom
from apps.members.models import Member
from apps.members.session import resolve_session


def client_for(user):
    """Return an API client authenticated as ``user`` using JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    """Create and return a regular mess member's user."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        display_name='Alice',
    )


@pytest.fixture
def bob(db):
    """Create and return another member's user."""
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        display_name='Bob',
    )


@pytest.fixture
def manager(db):
    """Create and return a staff user."""
    return User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        display_name='Manager',
        is_staff=True,
    )


@pytest.fixture
def alice_session(alice):
    return resolve_session(alice)


@pytest.fixture
def bob_session(bob):
    return resolve_session(bob)


@pytest.fixture
def manager_session(manager):
    return resolve_session(manager)


@pytest.fixture
def offline_member(db):
    """A member without a login account."""
    return Member.objects.create(name='Cook', email='')


@pytest.fixture
def alice_client(alice_session):
    return client_for(alice_session.user)


@pytest.fixture
def bob_client(bob_session):
    return client_for(bob_session.user)


@pytest.fixture
def manager_client(manager_session):
    return client_for(manager_session.user)


@pytest.fixture
def alice_meal(alice_session):
    return MealRecord.objects.create(
        member=alice_session.member,
        date=date(2025, 2, 3),
        meal_count=Decimal('2'),
    )


@pytest.fixture
def bob_meal(bob_session):
    return MealRecord.objects.create(
        member=bob_session.member,
        date=date(2025, 2, 3),
        meal_count=Decimal('1.5'),
    )


@pytest.fixture
def alice_deposit(alice_session):
    return DepositRecord.objects.create(
        member=alice_session.member,
        amount=Decimal('500.00'),
        date=date(2025, 2, 1),
    )


@pytest.fixture
def alice_box_bazar(alice_session):
    return BazarRecord.objects.create(
        member=alice_session.member,
        item_name='Rice',
        cost=Decimal('300.00'),
        date=date(2025, 2, 2),
        paid_from=PaidFrom.BOX,
    )
