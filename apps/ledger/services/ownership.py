"""Ownership rules shared by the ledger write services."""

from django.core.exceptions import ValidationError

from apps.settlement.store import get_schema_capabilities

from .exceptions import InvalidRecordError, RecordPermissionError, SchemaOutdatedError


def resolve_target_member(session, member=None):
    """
    Member a new record belongs to.

    Members write for themselves; staff may write on behalf of anyone.
    """
    if member is None or member.pk == session.member_id:
        return session.member
    if session.is_staff:
        return member
    raise RecordPermissionError("You can only add records for yourself")


def ensure_can_manage(session, record):
    if session.is_staff or session.owns(record):
        return
    raise RecordPermissionError("You can only change your own records")


def require_column(capability: str, message: str):
    if not getattr(get_schema_capabilities(), capability):
        raise SchemaOutdatedError(message)


def save_validated(record, exclude=None):
    """Run model validation, then save."""
    try:
        record.full_clean(exclude=exclude, validate_unique=False)
    except ValidationError as exc:
        raise InvalidRecordError(_first_message(exc))
    record.save()
    return record


def _first_message(exc):
    if hasattr(exc, 'message_dict'):
        field, messages = next(iter(exc.message_dict.items()))
        return f"{field}: {messages[0]}"
    return exc.messages[0]
