"""Domain-specific exceptions for ledger services."""


class LedgerServiceError(Exception):
    """Base exception for ledger services."""
    pass


class InvalidRecordError(LedgerServiceError):
    """Raised when record values fail validation."""
    pass


class RecordNotFoundError(LedgerServiceError):
    """Raised when a referenced record does not exist."""
    pass


class RecordPermissionError(LedgerServiceError):
    """Raised when a member changes a record that is not theirs."""
    pass


class LinkedDepositError(LedgerServiceError):
    """Raised when a deposit created by an out-of-pocket bazar is edited or deleted directly."""
    pass


class MealChartEditError(LedgerServiceError):
    """Raised when a meal-chart edit names no target or contradicts itself."""
    pass


class SchemaOutdatedError(LedgerServiceError):
    """Raised when a write needs a column the database does not have yet."""
    pass
