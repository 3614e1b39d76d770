"""
Member Services Module
======================

Listing and self-service profile updates for mess members. Members are
created lazily by ``resolve_session``; nothing here creates them.

Example:
    Update the caller's phone number::

        from apps.members.services import update_profile

        member = update_profile(session, phone='01700000000')
"""

import logging

from django.db import transaction

from .exceptions import MemberNotFoundError, MembersServiceError
from .models import Member

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('name', 'phone')


def list_members():
    """All members ordered by display name (name, else email, else placeholder)."""
    return sorted(Member.objects.select_related('user'), key=lambda m: m.display_name)


def get_member(member_id) -> Member:
    """
    Raises:
        MemberNotFoundError: If no member has this id.
    """
    try:
        return Member.objects.get(pk=member_id)
    except Member.DoesNotExist:
        raise MemberNotFoundError(f"Member {member_id} not found")


@transaction.atomic
def update_profile(session, **changes) -> Member:
    """
    Update the caller's own name and/or phone.

    Args:
        session: The acting ``MemberSession``.
        **changes: ``name`` and/or ``phone``.

    Returns:
        Member: The updated member.

    Raises:
        MembersServiceError: If an unknown field is given or the name is blank.
    """
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise MembersServiceError(f"Cannot update: {', '.join(sorted(unknown))}")

    member = Member.objects.select_for_update().get(pk=session.member_id)
    if 'name' in changes:
        name = (changes['name'] or '').strip()
        if not name:
            raise MembersServiceError("Name cannot be empty")
        member.name = name
    if 'phone' in changes:
        member.phone = (changes['phone'] or '').strip()

    member.save(update_fields=[*changes.keys(), 'updated_at'])
    logger.info("Member %s updated profile fields %s", member.id, sorted(changes))
    return member
