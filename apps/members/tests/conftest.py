import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.members.models import Member


@pytest.fixture
def user(db):
    """Create and return a user who has not opened the app yet."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        display_name='Alice',
    )


@pytest.fixture
def authenticated_client(user):
    """Return an API client authenticated as ``user`` using JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def offline_member(db):
    """A member without a login account."""
    return Member.objects.create(name='Cook', phone='01700000000')


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()
