from django.conf import settings
from django.db import models
import uuid


UNNAMED_LABEL = 'Unnamed'


class Member(models.Model):
    """
    A person sharing the mess.

    Members usually map one-to-one onto a login account, but a member may
    exist without one (added by an admin, or left behind after the account
    was removed). All ledger records belong to a member, never to a user.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='member',
    )

    name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        indexes = [
            models.Index(fields=['name'], name='members_name_idx'),
            models.Index(fields=['email'], name='members_email_idx'),
        ]
        ordering = ['name', 'email']

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return self.name or self.email or UNNAMED_LABEL

    @property
    def has_account(self):
        return self.user_id is not None
