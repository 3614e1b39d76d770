from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditTable(models.TextChoices):
    MEALS = 'meals', 'Meals'
    BAZAR = 'bazar', 'Bazar'
    DEPOSITS = 'deposits', 'Deposits'


class AuditAction(models.TextChoices):
    CREATE = 'create', 'Create'
    UPDATE = 'update', 'Update'
    DELETE = 'delete', 'Delete'


class AuditLog(models.Model):
    """One ledger write, with the row state before and after it."""

    table_name = models.CharField(max_length=20, choices=AuditTable.choices)
    action = models.CharField(max_length=10, choices=AuditAction.choices)
    row_id = models.CharField(max_length=64, blank=True)

    actor_member = models.ForeignKey(
        'members.Member',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries'
    )
    actor_email = models.EmailField(max_length=255, blank=True)

    before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)

    # Where the write came from, e.g. "meal_chart"
    source = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        indexes = [
            models.Index(fields=['table_name', 'action'], name='audit_table_action_idx'),
            models.Index(fields=['created_at'], name='audit_created_idx'),
        ]
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.action} {self.table_name}:{self.row_id} by {self.actor_email or 'unknown'}"
