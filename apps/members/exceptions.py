"""Domain-specific exceptions for members services."""


class MembersServiceError(Exception):
    """Base exception for members services."""
    pass


class NoMemberSessionError(MembersServiceError):
    """Raised when a member session is requested without an authenticated user."""
    pass


class MemberNotFoundError(MembersServiceError):
    """Raised when member does not exist."""
    pass
