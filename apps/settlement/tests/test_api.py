import pytest
from decimal import Decimal
from django.conf import settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.ledger.models import BazarRecord, MealRecord
from apps.settlement.formatters import today_in_tz


def rows_by_name(rows):
    return {row['name']: row for row in rows}


# =============================================================================
# Aggregates & Dashboard
# =============================================================================

@pytest.mark.django_db
class TestAggregatesAPI:

    def test_requires_authentication(self):
        response = APIClient().get(reverse('settlement:aggregates'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_global_totals(self, alice_client, february):
        response = alice_client.get(reverse('settlement:aggregates'))

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['total_meals']) == Decimal('30')
        assert Decimal(response.data['total_bazar_cost']) == Decimal('300')
        assert Decimal(response.data['total_deposits']) == Decimal('330')
        assert Decimal(response.data['meal_rate']) == Decimal('10')
        assert Decimal(response.data['pool_remaining']) == Decimal('30')
        assert response.data['total_members'] == 2
        assert response.data['used_fallback'] is False
        assert response.data['warning'] == ''

    def test_fallback_when_privileged_aggregates_disabled(self, alice_client, february, settings):
        settings.LEDGER_PRIVILEGED_AGGREGATES = False

        response = alice_client.get(reverse('settlement:aggregates'))

        assert response.data['used_fallback'] is True
        assert response.data['warning']
        assert Decimal(response.data['meal_rate']) == Decimal('10')

    def test_restricted_fallback_only_sees_own_rows(self, alice_client, february, settings):
        settings.LEDGER_PRIVILEGED_AGGREGATES = False
        settings.LEDGER_ROW_VISIBILITY = 'own'

        response = alice_client.get(reverse('settlement:aggregates'))

        assert Decimal(response.data['total_meals']) == Decimal('10')
        assert Decimal(response.data['meal_rate']) == Decimal('12')

    def test_restricted_session_still_gets_true_rate(self, alice_client, february, settings):
        settings.LEDGER_ROW_VISIBILITY = 'own'

        response = alice_client.get(reverse('settlement:aggregates'))

        assert Decimal(response.data['meal_rate']) == Decimal('10')
        assert response.data['used_fallback'] is False


@pytest.mark.django_db
class TestDashboardAPI:

    def test_current_member_stats(self, alice_client, february):
        response = alice_client.get(reverse('settlement:dashboard'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['member']['name'] == 'Alice'
        assert response.data['member']['has_account'] is True
        assert Decimal(response.data['total_meals']) == Decimal('10')
        assert Decimal(response.data['fair_share']) == Decimal('100')
        assert Decimal(response.data['net_balance']) == Decimal('50')
        assert Decimal(response.data['global_total_meals']) == Decimal('30')
        assert [m['date'] for m in response.data['meals']] == ['2025-02-10', '2025-02-01']

    def test_new_member_has_empty_dashboard(self, alice_client):
        response = alice_client.get(reverse('settlement:dashboard'))

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['meal_rate']) == Decimal('0')
        assert response.data['meals'] == []


# =============================================================================
# Reports
# =============================================================================

@pytest.mark.django_db
class TestReportAPI:

    def test_all_time_report(self, alice_client, february):
        response = alice_client.get(reverse('settlement:report'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['period'] == 'all'
        assert response.data['date_from'] is None
        assert response.data['currency'] == 'BDT'

        ledger = rows_by_name(response.data['ledger'])
        assert Decimal(ledger['Alice']['net_balance']) == Decimal('50')
        assert Decimal(ledger['Bob']['net_balance']) == Decimal('-20')

    def test_all_time_report_carries_current_month_bazar(self, alice_client, february):
        BazarRecord.objects.create(
            member=february[0].member, item_name='Oil', cost=Decimal('45'),
            date=today_in_tz(settings.MESS_TIMEZONE),
        )

        response = alice_client.get(reverse('settlement:report'))

        assert Decimal(response.data['current_month_bazar_cost']) == Decimal('45')
        assert Decimal(response.data['total_bazar_cost']) == Decimal('345')

    def test_month_report_has_no_current_month_bazar(self, alice_client, february):
        response = alice_client.get(reverse('settlement:report'), {'period': '2025-02'})

        assert response.data['current_month_bazar_cost'] is None

    def test_month_report(self, alice_client, february):
        response = alice_client.get(reverse('settlement:report'), {'period': '2025-02'})

        assert response.data['period'] == '2025-02'
        assert response.data['date_from'] == '2025-02-01'
        assert response.data['date_to'] == '2025-02-28'
        assert Decimal(response.data['meal_rate']) == Decimal('10')

        pivot = response.data['pivot']
        assert [m['name'] for m in pivot['members']] == ['Alice', 'Bob']
        first_row = pivot['rows'][0]
        assert first_row['date'] == '2025-02-01'
        assert first_row['counts'] == ['4', '8']

        assert [line['item_name'] for line in response.data['bazar']] == ['Fish', 'Rice']
        assert response.data['bazar'][0]['date_label'] == 'Sun, Feb 2, 2025'

    def test_empty_month(self, alice_client, february):
        response = alice_client.get(reverse('settlement:report'), {'period': '2025-03'})

        assert Decimal(response.data['total_meals']) == Decimal('0')
        assert Decimal(response.data['meal_rate']) == Decimal('0')
        assert response.data['pivot']['rows'] == []

    @pytest.mark.parametrize('period', ['2025-13', '2025-2', 'feb'])
    def test_invalid_period(self, alice_client, period):
        response = alice_client.get(reverse('settlement:report'), {'period': period})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Meal Chart
# =============================================================================

@pytest.mark.django_db
class TestMealChartAPI:

    def test_carry_forward_chart(self, alice_client, february):
        response = alice_client.get(reverse('settlement:meal-chart'), {'dinner_date': '2025-02-12'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['lunch_date'] == '2025-02-13'
        alice, bob = response.data['rows']
        assert alice['name'] == 'Alice'
        assert Decimal(alice['dinner']['value']) == Decimal('6')
        assert alice['dinner']['source_date'] == '2025-02-10'
        assert Decimal(bob['lunch']['value']) == Decimal('8')
        assert Decimal(response.data['total']) == Decimal('28')

    def test_invalid_dinner_date(self, alice_client):
        response = alice_client.get(reverse('settlement:meal-chart'), {'dinner_date': '2025-02-30'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize('dinner_date', ['0001-01-10', '9999-12-31'])
    def test_dinner_date_at_calendar_edge(self, alice_client, dinner_date):
        response = alice_client.get(reverse('settlement:meal-chart'), {'dinner_date': dinner_date})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_edit_updates_source_record(self, alice_client, february):
        chart = alice_client.get(reverse('settlement:meal-chart'), {'dinner_date': '2025-02-12'})
        record_id = chart.data['rows'][0]['dinner']['record_id']

        response = alice_client.post(
            reverse('settlement:meal-chart-edit'),
            {'dinner_record_id': record_id, 'dinner_value': '2'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['updated'] == [record_id]
        assert MealRecord.objects.get(pk=record_id).meal_count == Decimal('2')
        assert MealRecord.objects.count() == 4

    def test_edit_requires_a_target(self, alice_client):
        response = alice_client.post(reverse('settlement:meal-chart-edit'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_edit_requires_value_for_target(self, alice_client, february):
        record_id = MealRecord.objects.filter(member=february[0].member).first().id

        response = alice_client.post(
            reverse('settlement:meal-chart-edit'),
            {'dinner_record_id': str(record_id)},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cannot_edit_another_members_cell(self, alice_client, february):
        bob_record = MealRecord.objects.filter(member=february[1].member).first()

        response = alice_client.post(
            reverse('settlement:meal-chart-edit'),
            {'lunch_record_id': str(bob_record.id), 'lunch_value': '0'},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_source_record(self, alice_client, february):
        record = MealRecord.objects.filter(member=february[0].member).first()

        response = alice_client.post(
            reverse('settlement:meal-chart-delete'),
            {'dinner_record_id': str(record.id)},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted'] == [str(record.id)]
        assert not MealRecord.objects.filter(pk=record.pk).exists()
