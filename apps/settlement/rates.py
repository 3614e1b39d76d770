"""
Meal-rate and fair-share arithmetic.

The meal rate is global: every member pays the same price per meal no matter
whose bazar purchases made up the cost.

    meal_rate   = total_bazar / total_meals     (0 when no meals exist)
    fair_share  = meals * meal_rate
    net_balance = deposits - fair_share         (positive = credit)
"""
from decimal import Decimal

ZERO = Decimal('0')


def to_decimal(value) -> Decimal:
    """Decimal view of a stored amount; ``None`` and blanks count as zero."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def meal_rate(total_bazar, total_meals) -> Decimal:
    total_bazar = to_decimal(total_bazar)
    total_meals = to_decimal(total_meals)
    if total_meals <= 0:
        return ZERO
    return total_bazar / total_meals


def fair_share(meal_count, rate) -> Decimal:
    return to_decimal(meal_count) * to_decimal(rate)


def net_balance(deposits, share) -> Decimal:
    return to_decimal(deposits) - to_decimal(share)


def pool_remaining(total_deposits, total_bazar) -> Decimal:
    """Shared cash on hand: all deposits minus all bazar spending."""
    return to_decimal(total_deposits) - to_decimal(total_bazar)
