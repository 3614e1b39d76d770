"""Services for ledger business logic."""

from .exceptions import (
    LedgerServiceError,
    InvalidRecordError,
    RecordNotFoundError,
    RecordPermissionError,
    LinkedDepositError,
    MealChartEditError,
    SchemaOutdatedError,
)
from .meal_management import create_meal, update_meal, delete_meal
from .bazar_management import create_bazar, update_bazar, delete_bazar
from .deposit_management import create_deposit, update_deposit, delete_deposit
from .meal_chart_edits import MEAL_CHART_SOURCE, edit_meal_chart_cell, delete_meal_chart_cell

__all__ = [
    # Exceptions
    'LedgerServiceError',
    'InvalidRecordError',
    'RecordNotFoundError',
    'RecordPermissionError',
    'LinkedDepositError',
    'MealChartEditError',
    'SchemaOutdatedError',
    # Services
    'create_meal',
    'update_meal',
    'delete_meal',
    'create_bazar',
    'update_bazar',
    'delete_bazar',
    'create_deposit',
    'update_deposit',
    'delete_deposit',
    'MEAL_CHART_SOURCE',
    'edit_meal_chart_cell',
    'delete_meal_chart_cell',
]
