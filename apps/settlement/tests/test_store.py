import pytest
from datetime import date
from decimal import Decimal
from django.db import DatabaseError

from apps.ledger.models import MealRecord
from apps.members.models import Member
from apps.settlement.exceptions import AggregateUnavailableError, DataAccessError
from apps.settlement.store import (
    DjangoLedgerStore,
    SchemaCapabilities,
    clear_schema_capabilities,
    get_schema_capabilities,
)
from apps.settlement.subscriptions import ChangeEvent, subscribe


# =============================================================================
# Django Store Tests
# =============================================================================

@pytest.mark.django_db
class TestDjangoLedgerStore:

    def test_reads_records_as_snapshots(self, alice_session, february):
        store = DjangoLedgerStore(alice_session)

        meals = store.get_meals(member_id=alice_session.member_id)

        assert [m.meal_count for m in meals] == [Decimal('4'), Decimal('6')]
        assert all(m.created_at is not None for m in meals)
        assert {b.paid_from for b in store.get_bazar()} == {'box', 'user'}

    def test_date_bounds(self, alice_session, february):
        store = DjangoLedgerStore(alice_session)

        meals = store.get_meals(date_from=date(2025, 2, 2), date_to=date(2025, 2, 15))

        assert [m.date for m in meals] == [date(2025, 2, 10), date(2025, 2, 15)]

    def test_own_visibility(self, alice_session, february, settings):
        settings.LEDGER_ROW_VISIBILITY = 'own'
        store = DjangoLedgerStore(alice_session)

        assert {m.member_id for m in store.get_meals()} == {alice_session.member_id}
        assert len(store.get_members()) == 2
        assert store.get_global_aggregates()['total_meals'] == Decimal('30')

    def test_members_include_account_flag(self, alice_session):
        Member.objects.create(name='Cook')

        members = {m.name: m for m in DjangoLedgerStore(alice_session).get_members()}

        assert members['Alice'].has_account is True
        assert members['Cook'].has_account is False

    def test_privileged_aggregates_can_be_disabled(self, alice_session, settings):
        settings.LEDGER_PRIVILEGED_AGGREGATES = False

        with pytest.raises(AggregateUnavailableError):
            DjangoLedgerStore(alice_session).get_global_aggregates()

    def test_legacy_schema_reads_without_optional_columns(self, alice_session, february):
        store = DjangoLedgerStore(
            alice_session,
            capabilities=SchemaCapabilities(bazar_paid_from=False, meal_created_at=False),
        )

        assert all(m.created_at is None for m in store.get_meals())
        assert {b.paid_from for b in store.get_bazar()} == {'box'}

    def test_database_errors_become_data_access_errors(self, alice_session, monkeypatch):
        def broken_values(self, *fields):
            raise DatabaseError("connection lost")

        monkeypatch.setattr('django.db.models.query.QuerySet.values', broken_values)

        with pytest.raises(DataAccessError):
            DjangoLedgerStore(alice_session).get_deposits()

    def test_detects_current_schema(self, db):
        get_schema_capabilities.cache_clear()

        assert get_schema_capabilities() == SchemaCapabilities(bazar_paid_from=True, meal_created_at=True)

    def test_migrations_clear_cached_capabilities(self, db):
        get_schema_capabilities()
        assert get_schema_capabilities.cache_info().currsize >= 1

        clear_schema_capabilities(sender=None)

        assert get_schema_capabilities.cache_info().currsize == 0

    def test_post_migrate_handler_is_connected(self):
        from django.db.models.signals import post_migrate

        assert any(
            entry[1]() is clear_schema_capabilities
            for entry in post_migrate.receivers
        )

    def test_concurrent_reads_follow_settings(self, settings):
        settings.LEDGER_CONCURRENT_READS = True
        assert DjangoLedgerStore().concurrent_reads is True

        settings.LEDGER_CONCURRENT_READS = False
        assert DjangoLedgerStore().concurrent_reads is False


# =============================================================================
# Change Feed Tests
# =============================================================================

@pytest.mark.django_db
class TestSubscriptions:

    def test_events_until_cancelled(self, alice_session):
        events = []
        subscription = subscribe(events.append)

        meal = MealRecord.objects.create(member=alice_session.member, date=date(2025, 2, 1), meal_count=1)
        meal.meal_count = 2
        meal.save()
        subscription.cancel()
        meal_id = meal.pk
        meal.delete()

        assert events == [
            ChangeEvent('meals', 'create', meal_id),
            ChangeEvent('meals', 'update', meal_id),
        ]

    def test_cancel_is_idempotent(self):
        subscription = subscribe(lambda event: None)

        subscription.cancel()
        subscription.cancel()

        assert subscription.active is False

    def test_table_filter(self, alice_session):
        events = []

        with subscribe(events.append, tables=['deposits']):
            MealRecord.objects.create(member=alice_session.member, date=date(2025, 2, 1), meal_count=1)

        assert events == []

    def test_failing_subscriber_does_not_break_writes(self, alice_session, monkeypatch):
        logged = []
        monkeypatch.setattr('apps.settlement.subscriptions.logger.exception', lambda msg, *args: logged.append(msg))

        def broken(event):
            raise RuntimeError("subscriber crashed")

        with subscribe(broken):
            MealRecord.objects.create(member=alice_session.member, date=date(2025, 2, 1), meal_count=1)

        assert MealRecord.objects.count() == 1
        assert logged == ['Change feed subscriber failed for %s']
