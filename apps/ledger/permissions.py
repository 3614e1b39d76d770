"""
Custom permission classes for ledger app.

Records are readable according to ``LEDGER_ROW_VISIBILITY``; changing one
is limited to the member who owns it and to staff.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class CanManageRecord(BasePermission):
    """
    Permission to update or delete a meal, bazar or deposit record.

    Allows if:
    - Safe (read-only) request
    - User is staff
    - Record belongs to the user's member

    Usage:
        def get_permissions(self):
            if self.action in ['update', 'partial_update', 'destroy']:
                return [IsAuthenticated(), CanManageRecord()]
            return super().get_permissions()
    """

    message = 'You can only change your own records.'

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        if request.user.is_staff:
            return True
        member = getattr(request.user, 'member', None)
        return member is not None and obj.member_id == member.id
