"""
Data-access store
=================

Reads members and ledger records from the database and hands them to the
settlement core as frozen snapshot records. The core never touches the ORM.

Classes:
    LedgerStore: The read interface the settlement core depends on.
    SchemaCapabilities: Which optional columns the live schema has.
    DjangoLedgerStore: ORM-backed store scoped to a member session.

Row visibility:
    ``LEDGER_ROW_VISIBILITY = 'all'`` lets every member read every record.
    ``'own'`` limits non-staff sessions to their own meals, bazar and
    deposits. Members are always listed in full. The privileged
    ``get_global_aggregates`` ignores visibility; it is the only way a
    restricted session still gets the true global meal rate.

Schema capabilities are detected once per database alias and forgotten after
every ``migrate`` run (see ``apps.settlement.apps``).

Example:
    Reading a month of meals for the current member::

        store = DjangoLedgerStore(session)
        meals = store.get_meals(
            member_id=session.member_id,
            date_from=date(2025, 2, 1),
            date_to=date(2025, 2, 28),
        )
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import List, Optional, Protocol

from django.conf import settings
from django.db import DatabaseError, connections
from django.db.models import Count, Sum

from apps.ledger.models import BazarRecord, DepositRecord, MealRecord, PaidFrom
from apps.members.models import Member

from .exceptions import AggregateUnavailableError, DataAccessError
from .rates import ZERO
from .records import BazarEntry, DepositEntry, MealEntry, MemberSnapshot

logger = logging.getLogger(__name__)

VISIBILITY_ALL = 'all'
VISIBILITY_OWN = 'own'


class LedgerStore(Protocol):
    def get_members(self) -> List[MemberSnapshot]: ...

    def get_meals(self, member_id=None, date_from=None, date_to=None) -> List[MealEntry]: ...

    def get_bazar(self, member_id=None, date_from=None, date_to=None) -> List[BazarEntry]: ...

    def get_deposits(self, member_id=None, date_from=None, date_to=None) -> List[DepositEntry]: ...

    def get_global_aggregates(self) -> dict: ...


@dataclass(frozen=True)
class SchemaCapabilities:
    """
    Optional columns present in the live schema.

    Databases created before ``bazar.paid_from`` or ``meals.created_at``
    existed can still be read; the store leaves those columns out of its
    queries and writes refuse to proceed until the schema is migrated.
    """

    bazar_paid_from: bool = True
    meal_created_at: bool = True

    @classmethod
    def detect(cls, using: str = 'default') -> 'SchemaCapabilities':
        connection = connections[using]
        with connection.cursor() as cursor:
            bazar_columns = _column_names(connection, cursor, BazarRecord._meta.db_table)
            meal_columns = _column_names(connection, cursor, MealRecord._meta.db_table)
        capabilities = cls(
            bazar_paid_from='paid_from' in bazar_columns,
            meal_created_at='created_at' in meal_columns,
        )
        if not (capabilities.bazar_paid_from and capabilities.meal_created_at):
            logger.warning("Ledger schema is missing optional columns: %s", capabilities)
        return capabilities


def _column_names(connection, cursor, table):
    return {column.name for column in connection.introspection.get_table_description(cursor, table)}


@lru_cache(maxsize=None)
def get_schema_capabilities(using: str = 'default') -> SchemaCapabilities:
    """Detect capabilities once per database alias."""
    try:
        return SchemaCapabilities.detect(using)
    except DatabaseError as exc:
        raise DataAccessError(f"Failed to inspect ledger schema: {exc}") from exc


def clear_schema_capabilities(**kwargs):
    """
    Forget detected capabilities; connected to ``post_migrate``.

    A migration that adds an optional column takes effect without a restart.
    """
    get_schema_capabilities.cache_clear()


@contextmanager
def wrap_database_errors(operation: str):
    """Re-raise ORM failures as ``DataAccessError``."""
    try:
        yield
    except DatabaseError as exc:
        logger.error("Ledger store failed to %s: %s", operation, exc)
        raise DataAccessError(f"Failed to {operation}") from exc


class DjangoLedgerStore:
    """
    ORM-backed ``LedgerStore`` for one member session.

    Args:
        session: The requesting ``MemberSession``, or None for maintenance
            code that must see every row.
        capabilities: Override schema detection (tests, legacy databases).
    """

    def __init__(self, session=None, capabilities: Optional[SchemaCapabilities] = None, using: str = 'default'):
        self.session = session
        self.using = using
        self._capabilities = capabilities

    @property
    def capabilities(self) -> SchemaCapabilities:
        if self._capabilities is None:
            self._capabilities = get_schema_capabilities(self.using)
        return self._capabilities

    @property
    def concurrent_reads(self) -> bool:
        return getattr(settings, 'LEDGER_CONCURRENT_READS', True)

    def release_connection(self):
        """Close this thread's connection after a read on a worker thread."""
        connections[self.using].close()

    @property
    def sees_all_rows(self) -> bool:
        if self.session is None or self.session.is_staff:
            return True
        return getattr(settings, 'LEDGER_ROW_VISIBILITY', VISIBILITY_ALL) != VISIBILITY_OWN

    def _scoped(self, queryset, member_id=None, date_from=None, date_to=None):
        queryset = queryset.using(self.using)
        if not self.sees_all_rows:
            queryset = queryset.filter(member_id=self.session.member_id)
        if member_id is not None:
            queryset = queryset.filter(member_id=member_id)
        if date_from is not None:
            queryset = queryset.filter(date__gte=date_from)
        if date_to is not None:
            queryset = queryset.filter(date__lte=date_to)
        return queryset.order_by('date')

    def get_members(self) -> List[MemberSnapshot]:
        with wrap_database_errors('load members'):
            rows = list(
                Member.objects.using(self.using).values('id', 'name', 'email', 'phone', 'user_id')
            )
        return [
            MemberSnapshot(
                id=row['id'],
                name=row['name'] or '',
                email=row['email'] or '',
                phone=row['phone'] or '',
                has_account=row['user_id'] is not None,
            )
            for row in rows
        ]

    def get_meals(self, member_id=None, date_from=None, date_to=None) -> List[MealEntry]:
        fields = ['id', 'member_id', 'date', 'meal_count']
        if self.capabilities.meal_created_at:
            fields.append('created_at')
        with wrap_database_errors('load meals'):
            rows = list(self._scoped(MealRecord.objects, member_id, date_from, date_to).values(*fields))
        return [
            MealEntry(
                id=row['id'],
                member_id=row['member_id'],
                date=row['date'],
                meal_count=row['meal_count'],
                created_at=row.get('created_at'),
            )
            for row in rows
        ]

    def get_bazar(self, member_id=None, date_from=None, date_to=None) -> List[BazarEntry]:
        fields = ['id', 'member_id', 'item_name', 'cost', 'date']
        if self.capabilities.bazar_paid_from:
            fields.append('paid_from')
        with wrap_database_errors('load bazar'):
            rows = list(self._scoped(BazarRecord.objects, member_id, date_from, date_to).values(*fields))
        return [
            BazarEntry(
                id=row['id'],
                member_id=row['member_id'],
                item_name=row['item_name'],
                cost=row['cost'],
                date=row['date'],
                paid_from=row.get('paid_from') or PaidFrom.BOX,
            )
            for row in rows
        ]

    def get_deposits(self, member_id=None, date_from=None, date_to=None) -> List[DepositEntry]:
        with wrap_database_errors('load deposits'):
            rows = list(
                self._scoped(DepositRecord.objects, member_id, date_from, date_to)
                .values('id', 'member_id', 'amount', 'date')
            )
        return [
            DepositEntry(id=row['id'], member_id=row['member_id'], amount=row['amount'], date=row['date'])
            for row in rows
        ]

    def get_global_aggregates(self) -> dict:
        """
        Totals over every row, regardless of the session's visibility.

        Raises:
            AggregateUnavailableError: If privileged aggregates are disabled.
            DataAccessError: If the database query fails.
        """
        if not getattr(settings, 'LEDGER_PRIVILEGED_AGGREGATES', True):
            raise AggregateUnavailableError("Privileged aggregates are disabled")

        with wrap_database_errors('compute global aggregates'):
            meals = MealRecord.objects.using(self.using).aggregate(total=Sum('meal_count'))
            bazar = BazarRecord.objects.using(self.using).aggregate(total=Sum('cost'))
            deposits = DepositRecord.objects.using(self.using).aggregate(total=Sum('amount'))
            members = Member.objects.using(self.using).aggregate(total=Count('id'))

        return {
            'total_meals': meals['total'] or ZERO,
            'total_bazar': bazar['total'] or ZERO,
            'total_deposits': deposits['total'] or ZERO,
            'total_members': members['total'] or 0,
        }
