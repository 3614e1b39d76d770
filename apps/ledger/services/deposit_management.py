"""Deposit record create/update/delete."""

import logging

from django.db import transaction

from apps.audit.services import AuditAction, AuditTable, log_action, row_state

from ..models import BazarRecord, DepositRecord
from .exceptions import LinkedDepositError
from .ownership import ensure_can_manage, resolve_target_member, save_validated

logger = logging.getLogger(__name__)

DEPOSIT_FIELDS = ('amount', 'date')


def _ensure_not_linked(deposit):
    if BazarRecord.objects.filter(linked_deposit_id=deposit.pk).exists():
        raise LinkedDepositError(
            "This deposit was created by an out-of-pocket bazar entry; change the bazar entry instead"
        )


@transaction.atomic
def create_deposit(*, session, amount, date, member=None, source='') -> DepositRecord:
    deposit = DepositRecord(member=resolve_target_member(session, member), amount=amount, date=date)
    save_validated(deposit)
    logger.info("Deposit %s created for member %s", deposit.id, deposit.member_id)

    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.CREATE, row_id=deposit.id,
        after=row_state(deposit), actor=session, source=source,
    )
    return deposit


@transaction.atomic
def update_deposit(*, session, deposit, source='', **changes) -> DepositRecord:
    """
    Raises:
        LinkedDepositError: If the deposit mirrors an out-of-pocket bazar.
    """
    ensure_can_manage(session, deposit)
    _ensure_not_linked(deposit)
    before = row_state(deposit)

    for field in DEPOSIT_FIELDS:
        if field in changes:
            setattr(deposit, field, changes[field])
    save_validated(deposit)

    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.UPDATE, row_id=deposit.id,
        before=before, after=row_state(deposit), actor=session, source=source,
    )
    return deposit


@transaction.atomic
def delete_deposit(*, session, deposit, source=''):
    ensure_can_manage(session, deposit)
    _ensure_not_linked(deposit)
    before = row_state(deposit)
    row_id = deposit.id
    deposit.delete()
    logger.info("Deposit %s deleted", row_id)

    log_action(
        table=AuditTable.DEPOSITS, action=AuditAction.DELETE, row_id=row_id,
        before=before, actor=session, source=source,
    )
