import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.audit.models import AuditLog


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def staff_client(db):
    staff = User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        is_staff=True,
    )
    return client_for(staff)


@pytest.fixture
def member_client(db):
    user = User.objects.create_user(email='alice@example.com', password='TestPass123!')
    return client_for(user)


@pytest.fixture
def entries(db):
    """Three audit entries: two meal writes (one from the chart) and a deposit delete."""
    return [
        AuditLog.objects.create(
            table_name='meals', action='create', row_id='m1',
            actor_email='alice@example.com', after={'meal_count': '2.0'},
        ),
        AuditLog.objects.create(
            table_name='meals', action='update', row_id='m1',
            actor_email='alice@example.com', source='meal_chart',
            before={'meal_count': '2.0'}, after={'meal_count': '1.0'},
        ),
        AuditLog.objects.create(
            table_name='deposits', action='delete', row_id='d1',
            actor_email='manager@example.com', before={'amount': '500.00'},
        ),
    ]
