"""Meal record create/update/delete."""

import logging

from django.db import transaction

from apps.audit.services import AuditAction, AuditTable, log_action, row_state

from ..models import MealRecord
from .ownership import ensure_can_manage, require_column, resolve_target_member, save_validated

logger = logging.getLogger(__name__)

MEAL_FIELDS = ('date', 'meal_count')


def _require_meal_schema():
    require_column('meal_created_at', "Database is missing meals.created_at; run migrations")


@transaction.atomic
def create_meal(*, session, date, meal_count, member=None, source='') -> MealRecord:
    """
    Log meals for one day.

    Args:
        session: The acting ``MemberSession``.
        date: Day the meals are for.
        meal_count: Non-negative, in steps of 0.5.
        member: Staff only; defaults to the session's member.
        source: Audit source tag.

    Returns:
        The created MealRecord.

    Raises:
        RecordPermissionError: If a non-staff member writes for someone else.
        InvalidRecordError: If the meal count is negative or not a 0.5 step.
    """
    _require_meal_schema()
    meal = MealRecord(member=resolve_target_member(session, member), date=date, meal_count=meal_count)
    save_validated(meal)
    logger.info("Meal %s created for member %s", meal.id, meal.member_id)

    log_action(
        table=AuditTable.MEALS, action=AuditAction.CREATE, row_id=meal.id,
        after=row_state(meal), actor=session, source=source,
    )
    return meal


@transaction.atomic
def update_meal(*, session, meal, source='', **changes) -> MealRecord:
    ensure_can_manage(session, meal)
    before = row_state(meal)

    for field in MEAL_FIELDS:
        if field in changes:
            setattr(meal, field, changes[field])
    save_validated(meal)

    log_action(
        table=AuditTable.MEALS, action=AuditAction.UPDATE, row_id=meal.id,
        before=before, after=row_state(meal), actor=session, source=source,
    )
    return meal


@transaction.atomic
def delete_meal(*, session, meal, source=''):
    ensure_can_manage(session, meal)
    before = row_state(meal)
    row_id = meal.id
    meal.delete()
    logger.info("Meal %s deleted", row_id)

    log_action(
        table=AuditTable.MEALS, action=AuditAction.DELETE, row_id=row_id,
        before=before, actor=session, source=source,
    )
