"""
Per-request member session.

A ``MemberSession`` pairs the authenticated user with their ``Member`` row.
Views resolve it once per request and hand it to stores and services
explicitly; nothing reads identity from global state.
"""
from dataclasses import dataclass
import logging

from django.db import transaction

from .exceptions import NoMemberSessionError
from .models import Member

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemberSession:
    user: object
    member: Member

    @property
    def member_id(self):
        return self.member.id

    @property
    def is_staff(self) -> bool:
        return bool(getattr(self.user, 'is_staff', False))

    @property
    def email(self) -> str:
        return self.member.email or getattr(self.user, 'email', '') or ''

    def owns(self, record) -> bool:
        """True when ``record`` belongs to this session's member."""
        return record.member_id == self.member.id


@transaction.atomic
def resolve_session(user) -> MemberSession:
    """
    Return the session for ``user``, creating their member on first use.

    Raises:
        NoMemberSessionError: If the user is missing or anonymous.
    """
    if user is None or not getattr(user, 'is_authenticated', False):
        raise NoMemberSessionError("Authentication required")

    member, created = Member.objects.get_or_create(
        user=user,
        defaults={
            'name': user.display_name or user.email,
            'email': user.email,
        },
    )
    if created:
        logger.info("Created member %s for user %s", member.id, user.email)
    return MemberSession(user=user, member=member)
