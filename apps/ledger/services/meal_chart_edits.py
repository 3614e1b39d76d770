"""
Edits made from the meal chart.

A chart cell shows a carried-forward value, so an edit or delete acts on
the record the value came from (the cell's source record id). Dinner and
lunch are targeted independently; nothing is ever created here.
"""

import logging

from django.db import transaction

from apps.audit.services import AuditAction, AuditTable, log_action, row_state

from ..models import MealRecord
from .exceptions import MealChartEditError, RecordNotFoundError
from .ownership import ensure_can_manage, save_validated

logger = logging.getLogger(__name__)

MEAL_CHART_SOURCE = 'meal_chart'


def _targets(dinner_record_id, dinner_value, lunch_record_id, lunch_value, need_values):
    targets = {}
    for label, record_id, value in (
        ('dinner', dinner_record_id, dinner_value),
        ('lunch', lunch_record_id, lunch_value),
    ):
        if record_id is None:
            continue
        if need_values and value is None:
            raise MealChartEditError(f"A new {label} value is required")
        if record_id in targets and targets[record_id] != value:
            raise MealChartEditError(
                "Dinner and lunch come from the same record; give them the same value"
            )
        targets[record_id] = value

    if not targets:
        raise MealChartEditError("Choose dinner, lunch or both")
    return targets


def _locked_meal(record_id):
    try:
        return MealRecord.objects.select_for_update().get(pk=record_id)
    except MealRecord.DoesNotExist:
        raise RecordNotFoundError(f"Meal record {record_id} not found")


@transaction.atomic
def edit_meal_chart_cell(
    *,
    session,
    dinner_record_id=None,
    dinner_value=None,
    lunch_record_id=None,
    lunch_value=None,
):
    """
    Set new meal counts on the source records behind a chart row.

    Args:
        session: The acting ``MemberSession``.
        dinner_record_id: Source record of the dinner cell, if editing it.
        dinner_value: New dinner meal count.
        lunch_record_id: Source record of the lunch cell, if editing it.
        lunch_value: New lunch meal count.

    Returns:
        list[MealRecord]: The updated records, one per distinct id.

    Raises:
        MealChartEditError: If no target is given, a value is missing, or
            both cells share a record but ask for different values.
        RecordNotFoundError: If a source record no longer exists.
        RecordPermissionError: If the record belongs to another member.
    """
    targets = _targets(dinner_record_id, dinner_value, lunch_record_id, lunch_value, need_values=True)

    updated = []
    for record_id, value in targets.items():
        meal = _locked_meal(record_id)
        ensure_can_manage(session, meal)
        before = row_state(meal)
        meal.meal_count = value
        save_validated(meal)
        updated.append(meal)

        log_action(
            table=AuditTable.MEALS, action=AuditAction.UPDATE, row_id=meal.id,
            before=before, after=row_state(meal), actor=session, source=MEAL_CHART_SOURCE,
        )
    logger.info("Meal chart edit updated %d record(s)", len(updated))
    return updated


@transaction.atomic
def delete_meal_chart_cell(*, session, dinner_record_id=None, lunch_record_id=None):
    """
    Delete the source records behind a chart row.

    Returns:
        list: Ids of the deleted records.
    """
    targets = _targets(dinner_record_id, None, lunch_record_id, None, need_values=False)

    deleted = []
    for record_id in targets:
        meal = _locked_meal(record_id)
        ensure_can_manage(session, meal)
        before = row_state(meal)
        meal.delete()
        deleted.append(record_id)

        log_action(
            table=AuditTable.MEALS, action=AuditAction.DELETE, row_id=record_id,
            before=before, actor=session, source=MEAL_CHART_SOURCE,
        )
    logger.info("Meal chart delete removed %d record(s)", len(deleted))
    return deleted
