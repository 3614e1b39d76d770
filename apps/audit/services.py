"""
Audit Services Module
=====================

Best-effort audit trail for ledger writes (meals, bazar, deposits).

Audit entries are a side channel: a failure to store one is logged and
swallowed so that it never rolls back or breaks the write being audited.
The insert runs in its own savepoint for the same reason.

Functions:
    log_action: Record one create/update/delete.
    filter_entries: Audit entries matching staff filters, newest first.
    delete_entries: Delete entries matching the same filters.
    row_state: JSON-ready dict of a model instance for before/after columns.

Example:
    Logging an update done from the meal chart::

        before = row_state(meal)
        meal.meal_count = Decimal('2')
        meal.save()
        log_action(
            table='meals',
            action='update',
            row_id=meal.id,
            before=before,
            after=row_state(meal),
            actor=session,
            source='meal_chart',
        )
"""
import logging

from django.db import DatabaseError, transaction
from django.forms.models import model_to_dict

from .models import AuditAction, AuditLog, AuditTable

logger = logging.getLogger(__name__)

MAX_LIST_ENTRIES = 200


def row_state(instance) -> dict:
    """Field values of ``instance`` plus its primary key, for JSON storage."""
    state = model_to_dict(instance)
    state['id'] = instance.pk
    for field in ('created_at', 'updated_at'):
        if hasattr(instance, field):
            state[field] = getattr(instance, field)
    return state


def log_action(*, table, action, row_id=None, before=None, after=None, actor=None, source=''):
    """
    Store one audit entry.

    Args:
        table: One of ``AuditTable`` values.
        action: One of ``AuditAction`` values.
        row_id: Primary key of the affected row.
        before: Row state before the write, or None for creates.
        after: Row state after the write, or None for deletes.
        actor: The ``MemberSession`` performing the write, or None.
        source: Where the write came from, e.g. ``meal_chart``.

    Returns:
        AuditLog or None: The stored entry; None when storing failed.
    """
    member = getattr(actor, 'member', None)
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                table_name=table,
                action=action,
                row_id='' if row_id is None else str(row_id),
                actor_member=member,
                actor_email=getattr(actor, 'email', '') or '',
                before=before,
                after=after,
                source=source or '',
            )
    except DatabaseError as exc:
        logger.warning("Audit log insert failed for %s %s %s: %s", action, table, row_id, exc)
        return None


def filter_entries(*, table=None, action=None, actor_email=None, source=None):
    queryset = AuditLog.objects.select_related('actor_member')
    if table:
        queryset = queryset.filter(table_name=table)
    if action:
        queryset = queryset.filter(action=action)
    if actor_email:
        queryset = queryset.filter(actor_email__icontains=actor_email)
    if source:
        queryset = queryset.filter(source=source)
    return queryset


def list_entries(limit=MAX_LIST_ENTRIES, **filters):
    return list(filter_entries(**filters).order_by('-created_at', '-id')[:limit])


@transaction.atomic
def delete_entries(**filters) -> int:
    """Delete every entry matching ``filters``; returns the number deleted."""
    deleted, _ = filter_entries(**filters).delete()
    logger.info("Deleted %d audit entries matching %s", deleted, filters)
    return deleted


__all__ = [
    'AuditAction',
    'AuditTable',
    'MAX_LIST_ENTRIES',
    'delete_entries',
    'filter_entries',
    'list_entries',
    'log_action',
    'row_state',
]
