from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


def validate_half_meal_step(value):
    """Meal counts go in steps of 0.5."""
    if (Decimal(value) * 2) % 1 != 0:
        raise ValidationError('Meal count must be a multiple of 0.5.')


class PaidFrom(models.TextChoices):
    BOX = 'box', 'Meal box'
    USER = 'user', 'Own pocket'


class MealRecord(models.Model):
    """Meals a member declares for one day."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.CASCADE,
        related_name='meals'
    )
    date = models.DateField()
    meal_count = models.DecimalField(
        max_digits=5,
        decimal_places=1,
        validators=[MinValueValidator(Decimal('0')), validate_half_meal_step]
    )

    # created_at drives the late-submission flag on the meal chart
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'meals'
        indexes = [
            models.Index(fields=['member', 'date'], name='meals_member_date_idx'),
            models.Index(fields=['date'], name='meals_date_idx'),
        ]
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.member} - {self.meal_count} meal(s) on {self.date}"


class DepositRecord(models.Model):
    """Cash a member put into the common pool."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.CASCADE,
        related_name='deposits'
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    date = models.DateField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'deposits'
        indexes = [
            models.Index(fields=['member', 'date'], name='deposits_member_date_idx'),
            models.Index(fields=['date'], name='deposits_date_idx'),
        ]
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.member} - {self.amount} on {self.date}"


class BazarRecord(models.Model):
    """
    A shared grocery purchase.

    When ``paid_from`` is ``user`` the member paid out of pocket; the matching
    deposit (same member, amount and date) is kept in ``linked_deposit`` so
    the purchase counts as their contribution to the pool.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.CASCADE,
        related_name='bazar_records'
    )
    item_name = models.CharField(max_length=200)
    cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    date = models.DateField()
    paid_from = models.CharField(
        max_length=10,
        choices=PaidFrom.choices,
        default=PaidFrom.BOX
    )
    linked_deposit = models.OneToOneField(
        DepositRecord,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bazar_source'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bazar'
        indexes = [
            models.Index(fields=['member', 'date'], name='bazar_member_date_idx'),
            models.Index(fields=['date'], name='bazar_date_idx'),
        ]
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.item_name} - {self.cost} ({self.get_paid_from_display()})"
