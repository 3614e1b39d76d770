from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only admin view of the audit trail."""

    list_display = ['created_at', 'table_name', 'action', 'row_id', 'actor_email', 'source']
    list_filter = ['table_name', 'action', 'source', 'created_at']
    search_fields = ['actor_email', 'row_id']
    readonly_fields = [f.name for f in AuditLog._meta.fields]
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        """Entries are written by the ledger services only."""
        return False
