from django.contrib import admin
from .models import BazarRecord, DepositRecord, MealRecord


@admin.register(MealRecord)
class MealRecordAdmin(admin.ModelAdmin):
    list_display = ['member', 'date', 'meal_count', 'created_at']
    list_filter = ['date']
    search_fields = ['member__name', 'member__email']
    date_hierarchy = 'date'
    ordering = ['-date', '-created_at']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['member']


@admin.register(BazarRecord)
class BazarRecordAdmin(admin.ModelAdmin):
    """
    Bazar records.

    Edit out-of-pocket bazar through the API rather than here: the admin
    does not keep the linked deposit in step.
    """

    list_display = ['item_name', 'member', 'cost', 'date', 'paid_from', 'linked_deposit']
    list_filter = ['paid_from', 'date']
    search_fields = ['item_name', 'member__name', 'member__email']
    date_hierarchy = 'date'
    ordering = ['-date', '-created_at']
    readonly_fields = ['linked_deposit', 'created_at', 'updated_at']
    raw_id_fields = ['member']


@admin.register(DepositRecord)
class DepositRecordAdmin(admin.ModelAdmin):
    list_display = ['member', 'amount', 'date', 'created_at']
    list_filter = ['date']
    search_fields = ['member__name', 'member__email']
    date_hierarchy = 'date'
    ordering = ['-date', '-created_at']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['member']
