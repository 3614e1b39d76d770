"""User registration service."""

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from apps.members.session import resolve_session
from .exceptions import UserRegistrationError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    display_name: str = ""
) -> User:
    """
    Register a new user and the mess member linked to it.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        display_name: Optional display name, also used as the member name

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is taken or the user cannot be saved
    """
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("A user with this email already exists")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            display_name=display_name
        )
    except (IntegrityError, ValueError) as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    session = resolve_session(user)
    logger.info("Registered user %s as member %s", user.email, session.member_id)
    return user
