"""
Serializers for settlement app.

This module contains:
1. Input serializers - Query parameter and meal-chart edit validation
2. Response serializers - Output formatting of the pure settlement results

Input Serializers:
    PeriodQuerySerializer - Validates the report period (YYYY-MM or empty)
    MealChartQuerySerializer - Validates the dinner date
    MealChartEditSerializer - Source record ids plus new values
    MealChartDeleteSerializer - Source record ids

Response Serializers:
    GlobalAggregateSerializer - Global totals, meal rate and pool remaining
    MemberReportSerializer - One member's all-time stats and records
    PeriodReportSerializer - All-time or monthly report
    MealChartSerializer - Carry-forward dinner/lunch chart
"""

from django.conf import settings
from rest_framework import serializers

from apps.ledger.serializers import MealCountField
from .formatters import DEFAULT_TZ, format_date_with_day, format_time_in_tz


def money_field(**kwargs):
    return serializers.DecimalField(max_digits=20, decimal_places=2, **kwargs)


def rate_field(**kwargs):
    return serializers.DecimalField(max_digits=20, decimal_places=4, **kwargs)


def meals_field(**kwargs):
    return serializers.DecimalField(max_digits=20, decimal_places=1, **kwargs)


# =============================================================================
# Input Serializers
# =============================================================================

class PeriodQuerySerializer(serializers.Serializer):
    """
    Validate the report period.

    Query Parameters:
        period (str): Month in YYYY-MM format; omitted or empty for all-time
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        default='',
        help_text='Month period in YYYY-MM format, empty for all-time'
    )


class MealChartQuerySerializer(serializers.Serializer):
    """
    Validate the meal chart date.

    Query Parameters:
        dinner_date (date): Dinner date; lunch is the next day. Defaults to
            today in the mess timezone.
    """

    dinner_date = serializers.DateField(required=False)


class MealChartDeleteSerializer(serializers.Serializer):
    """Source record ids behind the dinner and/or lunch cells."""

    dinner_record_id = serializers.UUIDField(required=False, allow_null=True)
    lunch_record_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('dinner_record_id') and not attrs.get('lunch_record_id'):
            raise serializers.ValidationError('Choose dinner, lunch or both.')
        return attrs


class MealChartEditSerializer(MealChartDeleteSerializer):
    """Source record ids plus the new meal counts to store on them."""

    dinner_value = MealCountField(required=False, allow_null=True)
    lunch_value = MealCountField(required=False, allow_null=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        for label in ('dinner', 'lunch'):
            if attrs.get(f'{label}_record_id') and attrs.get(f'{label}_value') is None:
                raise serializers.ValidationError({f'{label}_value': f'A new {label} value is required.'})
        return attrs


# =============================================================================
# Response Serializers
# =============================================================================

class GlobalAggregateSerializer(serializers.Serializer):
    """Response serializer for global totals."""
    total_meals = meals_field()
    total_bazar_cost = money_field()
    total_deposits = money_field()
    total_members = serializers.IntegerField()
    meal_rate = rate_field()
    pool_remaining = money_field()
    used_fallback = serializers.BooleanField()
    warning = serializers.CharField(allow_blank=True)


class LedgerRowSerializer(serializers.Serializer):
    """One member's line in a ledger."""
    member_id = serializers.CharField()
    name = serializers.CharField()
    meals = meals_field()
    deposits = money_field()
    fair_share = money_field()
    net_balance = money_field()


class LedgerLineSerializer(serializers.Serializer):
    """One bazar or deposit row of a report."""
    id = serializers.CharField()
    date = serializers.DateField()
    date_label = serializers.SerializerMethodField()
    member_id = serializers.CharField()
    member_name = serializers.CharField()
    amount = money_field()
    item_name = serializers.CharField(allow_blank=True)
    paid_from = serializers.CharField(allow_blank=True)

    def get_date_label(self, obj):
        return format_date_with_day(obj.date)


class PivotMemberSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()


class PivotRowSerializer(serializers.Serializer):
    date = serializers.DateField()
    counts = serializers.ListField(child=serializers.CharField(allow_blank=True))


class MealPivotSerializer(serializers.Serializer):
    """Date x member meal counts; blank where nothing was logged."""
    members = PivotMemberSerializer(many=True)
    rows = PivotRowSerializer(many=True)


class PeriodReportSerializer(serializers.Serializer):
    """Response serializer for the period report."""
    period = serializers.CharField()
    date_from = serializers.DateField(allow_null=True)
    date_to = serializers.DateField(allow_null=True)
    total_meals = meals_field()
    total_bazar_cost = money_field()
    total_deposits = money_field()
    meal_rate = rate_field()
    pool_remaining = money_field()
    current_month_bazar_cost = money_field(allow_null=True)
    used_fallback = serializers.BooleanField()
    warning = serializers.CharField(allow_blank=True)
    currency = serializers.SerializerMethodField()
    ledger = LedgerRowSerializer(many=True)
    pivot = MealPivotSerializer()
    bazar = LedgerLineSerializer(many=True)
    deposits = LedgerLineSerializer(many=True)

    def get_currency(self, obj):
        return getattr(settings, 'CURRENCY_LABEL', 'BDT')


class ReportMemberSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.CharField(allow_blank=True)
    phone = serializers.CharField(allow_blank=True)
    has_account = serializers.BooleanField()


class ReportMealSerializer(serializers.Serializer):
    id = serializers.CharField()
    date = serializers.DateField()
    meal_count = meals_field()


class ReportBazarSerializer(serializers.Serializer):
    id = serializers.CharField()
    date = serializers.DateField()
    item_name = serializers.CharField()
    cost = money_field()
    paid_from = serializers.CharField()


class ReportDepositSerializer(serializers.Serializer):
    id = serializers.CharField()
    date = serializers.DateField()
    amount = money_field()


class MemberReportSerializer(serializers.Serializer):
    """Response serializer for a member's all-time report and dashboard."""
    member = ReportMemberSerializer()
    total_meals = meals_field()
    total_bazar_cost = money_field()
    total_deposits = money_field()
    meal_rate = rate_field()
    fair_share = money_field()
    net_balance = money_field()
    global_total_meals = meals_field()
    global_total_bazar_cost = money_field()
    pool_remaining = money_field()
    used_fallback = serializers.BooleanField()
    warning = serializers.CharField(allow_blank=True)
    meals = ReportMealSerializer(many=True)
    bazar = ReportBazarSerializer(many=True)
    deposits = ReportDepositSerializer(many=True)


class ResolvedMealSerializer(serializers.Serializer):
    """A carried-forward chart cell and the record it came from."""
    value = meals_field()
    late = serializers.BooleanField()
    late_at = serializers.SerializerMethodField()
    source_date = serializers.DateField(allow_null=True)
    source_date_label = serializers.SerializerMethodField()
    record_id = serializers.CharField(allow_null=True)

    def _tz(self):
        return getattr(settings, 'MESS_TIMEZONE', DEFAULT_TZ)

    def get_late_at(self, obj):
        return format_time_in_tz(obj.late_at, self._tz())

    def get_source_date_label(self, obj):
        return format_date_with_day(obj.source_date)


class MealChartRowSerializer(serializers.Serializer):
    member_id = serializers.CharField()
    name = serializers.CharField()
    dinner = ResolvedMealSerializer()
    lunch = ResolvedMealSerializer()


class MealChartSerializer(serializers.Serializer):
    """Response serializer for the meal chart."""
    dinner_date = serializers.DateField()
    dinner_date_label = serializers.SerializerMethodField()
    lunch_date = serializers.DateField()
    lunch_date_label = serializers.SerializerMethodField()
    window_start = serializers.DateField()
    total_dinner = meals_field()
    total_lunch = meals_field()
    total = meals_field()
    rows = MealChartRowSerializer(many=True)

    def get_dinner_date_label(self, obj):
        return format_date_with_day(obj.dinner_date)

    def get_lunch_date_label(self, obj):
        return format_date_with_day(obj.lunch_date)


class MealChartEditResponseSerializer(serializers.Serializer):
    updated = serializers.ListField(child=serializers.CharField())


class MealChartDeleteResponseSerializer(serializers.Serializer):
    deleted = serializers.ListField(child=serializers.CharField())


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
