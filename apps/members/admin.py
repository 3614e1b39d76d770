from django.contrib import admin

from .models import Member


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    """Admin interface for mess members."""

    list_display = ['display_name', 'email', 'phone', 'has_account', 'created_at']
    search_fields = ['name', 'email', 'phone']
    readonly_fields = ['id', 'created_at', 'updated_at']
    raw_id_fields = ['user']

    def has_account(self, obj):
        return obj.has_account
    has_account.boolean = True
    has_account.short_description = 'Account'
