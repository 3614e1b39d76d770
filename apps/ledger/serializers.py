from decimal import Decimal

from rest_framework import serializers

from .models import BazarRecord, DepositRecord, MealRecord, PaidFrom
from apps.members.models import Member


# =============================================================================
# Input Serializers
# =============================================================================

class RecordFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for ledger record listing.

    Query Parameters:
        scope (str): 'own' (default) for the caller's records, 'all' for
            every record the caller may see
        member (UUID): Filter by member ID
        date_from (date): Records on or after this date
        date_to (date): Records on or before this date
    """

    SCOPE_OWN = 'own'
    SCOPE_ALL = 'all'

    scope = serializers.ChoiceField(
        choices=[SCOPE_OWN, SCOPE_ALL],
        required=False,
        default=SCOPE_OWN
    )
    member = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


def validate_meal_count(value):
    if value < 0:
        raise serializers.ValidationError('Meal count cannot be negative.')
    if (value * 2) % 1 != 0:
        raise serializers.ValidationError('Meal count must be a multiple of 0.5.')
    return value


class MealCountField(serializers.DecimalField):
    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 5)
        kwargs.setdefault('decimal_places', 1)
        kwargs.setdefault('validators', [validate_meal_count])
        super().__init__(**kwargs)


class RecordInputSerializer(serializers.Serializer):
    """Shared ``member`` handling: staff may write on behalf of another member."""

    member = serializers.PrimaryKeyRelatedField(
        queryset=Member.objects.all(),
        required=False,
        help_text="Staff only. Defaults to the caller's member."
    )


class MealInputSerializer(RecordInputSerializer):
    date = serializers.DateField()
    meal_count = MealCountField()


class BazarInputSerializer(RecordInputSerializer):
    item_name = serializers.CharField(max_length=200)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    date = serializers.DateField()
    paid_from = serializers.ChoiceField(choices=PaidFrom.choices, default=PaidFrom.BOX)


class DepositInputSerializer(RecordInputSerializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    date = serializers.DateField()


# =============================================================================
# Output Serializers
# =============================================================================

class MemberNameMixin(serializers.Serializer):
    member_name = serializers.SerializerMethodField()

    def get_member_name(self, obj):
        return obj.member.display_name


class MealRecordSerializer(MemberNameMixin, serializers.ModelSerializer):

    class Meta:
        model = MealRecord
        fields = ['id', 'member', 'member_name', 'date', 'meal_count', 'created_at', 'updated_at']
        read_only_fields = fields


class BazarRecordSerializer(MemberNameMixin, serializers.ModelSerializer):

    class Meta:
        model = BazarRecord
        fields = [
            'id',
            'member',
            'member_name',
            'item_name',
            'cost',
            'date',
            'paid_from',
            'linked_deposit',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class DepositRecordSerializer(MemberNameMixin, serializers.ModelSerializer):
    """Deposits; ``linked_bazar`` is set when the deposit mirrors an out-of-pocket bazar."""

    linked_bazar = serializers.SerializerMethodField()

    class Meta:
        model = DepositRecord
        fields = ['id', 'member', 'member_name', 'amount', 'date', 'linked_bazar', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_linked_bazar(self, obj):
        bazar = getattr(obj, 'bazar_source', None)
        return str(bazar.id) if bazar else None
