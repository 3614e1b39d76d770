"""
Bazar record create/update/delete.

A bazar bought out of the member's own pocket (``paid_from='user'``) counts
as that member's contribution to the pool: it carries a linked deposit with
the same member, amount and date. The bazar row and its deposit are always
written in one transaction, so the pair can never be half-applied.

    box  -> user   creates the linked deposit
    user -> box    deletes it
    cost/date edit copied onto the linked deposit
    delete bazar   deletes the linked deposit too
"""

import logging

from django.db import transaction

from apps.audit.services import AuditAction, AuditTable, log_action, row_state

from ..models import BazarRecord, DepositRecord, PaidFrom
from .ownership import ensure_can_manage, require_column, resolve_target_member, save_validated

logger = logging.getLogger(__name__)

BAZAR_FIELDS = ('item_name', 'cost', 'date', 'paid_from')


def _require_bazar_schema():
    require_column('bazar_paid_from', "Database is missing bazar.paid_from; run migrations")


def _create_linked_deposit(session, bazar, source):
    deposit = DepositRecord(member=bazar.member, amount=bazar.cost, date=bazar.date)
    save_validated(deposit)
    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.CREATE, row_id=deposit.id,
        after=row_state(deposit), actor=session, source=source,
    )
    return deposit


def _sync_linked_deposit(session, bazar, deposit, source):
    if (deposit.member_id, deposit.amount, deposit.date) == (bazar.member_id, bazar.cost, bazar.date):
        return
    before = row_state(deposit)
    deposit.member_id = bazar.member_id
    deposit.amount = bazar.cost
    deposit.date = bazar.date
    save_validated(deposit)
    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.UPDATE, row_id=deposit.id,
        before=before, after=row_state(deposit), actor=session, source=source,
    )


def _delete_linked_deposit(session, deposit, source):
    before = row_state(deposit)
    row_id = deposit.id
    deposit.delete()
    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.DELETE, row_id=row_id,
        before=before, actor=session, source=source,
    )


@transaction.atomic
def create_bazar(*, session, item_name, cost, date, paid_from=PaidFrom.BOX, member=None, source='') -> BazarRecord:
    """
    Record a bazar purchase.

    Args:
        session: The acting ``MemberSession``.
        item_name: What was bought.
        cost: Non-negative amount.
        date: Purchase date.
        paid_from: ``box`` (shared pool) or ``user`` (own pocket).
        member: Staff only; defaults to the session's member.
        source: Audit source tag.

    Returns:
        The created BazarRecord; ``linked_deposit`` is set for ``user``.

    Raises:
        RecordPermissionError: If a non-staff member writes for someone else.
        InvalidRecordError: If the cost is negative.
        SchemaOutdatedError: If the database has no ``paid_from`` column.
    """
    _require_bazar_schema()
    bazar = BazarRecord(
        member=resolve_target_member(session, member),
        item_name=item_name,
        cost=cost,
        date=date,
        paid_from=paid_from,
    )
    save_validated(bazar, exclude=['linked_deposit'])

    if bazar.paid_from == PaidFrom.USER:
        bazar.linked_deposit = _create_linked_deposit(session, bazar, source)
        bazar.save(update_fields=['linked_deposit', 'updated_at'])

    logger.info("Bazar %s created for member %s (paid from %s)", bazar.id, bazar.member_id, bazar.paid_from)
    log_action(
        table=AuditTable.BAZAR, action=AuditAction.CREATE, row_id=bazar.id,
        after=row_state(bazar), actor=session, source=source,
    )
    return bazar


@transaction.atomic
def update_bazar(*, session, bazar, source='', **changes) -> BazarRecord:
    ensure_can_manage(session, bazar)
    _require_bazar_schema()
    before = row_state(bazar)
    deposit = bazar.linked_deposit

    for field in BAZAR_FIELDS:
        if field in changes:
            setattr(bazar, field, changes[field])

    if bazar.paid_from == PaidFrom.USER:
        save_validated(bazar, exclude=['linked_deposit'])
        if deposit is None:
            bazar.linked_deposit = _create_linked_deposit(session, bazar, source)
            bazar.save(update_fields=['linked_deposit', 'updated_at'])
        else:
            _sync_linked_deposit(session, bazar, deposit, source)
    else:
        bazar.linked_deposit = None
        save_validated(bazar, exclude=['linked_deposit'])
        if deposit is not None:
            _delete_linked_deposit(session, deposit, source)

    log_action(
        table=AuditTable.BAZAR, action=AuditAction.UPDATE, row_id=bazar.id,
        before=before, after=row_state(bazar), actor=session, source=source,
    )
    return bazar


@transaction.atomic
def delete_bazar(*, session, bazar, source=''):
    ensure_can_manage(session, bazar)
    before = row_state(bazar)
    row_id = bazar.id
    deposit = bazar.linked_deposit

    bazar.delete()
    if deposit is not None:
        _delete_linked_deposit(session, deposit, source)
    logger.info("Bazar %s deleted", row_id)

    log_action(
        table=AuditTable.BAZAR, action=AuditAction.DELETE, row_id=row_id,
        before=before, actor=session, source=source,
    )
