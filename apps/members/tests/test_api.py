import pytest
import uuid
from datetime import date
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.ledger.models import MealRecord
from apps.members.models import Member


# =============================================================================
# Member List
# =============================================================================

@pytest.mark.django_db
class TestMemberList:

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('members:member-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_members_by_display_name(self, authenticated_client, offline_member):
        Member.objects.create(email='zed@example.com')

        response = authenticated_client.get(reverse('members:member-list'))

        assert response.status_code == status.HTTP_200_OK
        # The caller's own member is created on first access
        assert [m['display_name'] for m in response.data] == ['Alice', 'Cook', 'zed@example.com']
        assert [m['has_account'] for m in response.data] == [True, False, False]


# =============================================================================
# Own Profile
# =============================================================================

@pytest.mark.django_db
class TestMyProfile:

    def test_first_access_creates_member(self, authenticated_client, user):
        response = authenticated_client.get(reverse('members:my-profile'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Alice'
        assert response.data['email'] == 'alice@example.com'
        assert Member.objects.get(user=user).id == uuid.UUID(str(response.data['id']))

    def test_update_name_and_phone(self, authenticated_client, user):
        response = authenticated_client.patch(
            reverse('members:my-profile'),
            {'name': 'Alice R.', 'phone': '01811111111'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        member = Member.objects.get(user=user)
        assert member.name == 'Alice R.'
        assert member.phone == '01811111111'

    def test_blank_name_rejected(self, authenticated_client):
        response = authenticated_client.patch(reverse('members:my-profile'), {'name': '   '}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_email_not_editable(self, authenticated_client, user):
        authenticated_client.patch(reverse('members:my-profile'), {'email': 'x@example.com'}, format='json')

        assert Member.objects.get(user=user).email == 'alice@example.com'


# =============================================================================
# Member Report
# =============================================================================

@pytest.mark.django_db
class TestMemberReport:

    def test_report_for_member_without_account(self, authenticated_client, offline_member):
        MealRecord.objects.create(member=offline_member, date=date(2025, 2, 1), meal_count=Decimal('3'))

        response = authenticated_client.get(
            reverse('members:member-report', kwargs={'member_id': offline_member.id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['member']['name'] == 'Cook'
        assert response.data['member']['has_account'] is False
        assert Decimal(response.data['total_meals']) == Decimal('3')

    def test_unknown_member(self, authenticated_client):
        response = authenticated_client.get(
            reverse('members:member-report', kwargs={'member_id': uuid.uuid4()})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert 'error' in response.data
