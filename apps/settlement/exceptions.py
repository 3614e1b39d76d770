"""
Domain exceptions for settlement app.

Exception Hierarchy:
    SettlementServiceError (base)
    ├── InvalidPeriodError
    ├── InvalidMealChartDateError
    └── DataAccessError
        └── AggregateUnavailableError

Degraded results (visibility-limited aggregate fallback) are not errors; they
are flagged on the returned value via ``used_fallback``.
"""


class SettlementServiceError(Exception):
    """Base exception for all settlement service errors."""

    pass


class InvalidPeriodError(SettlementServiceError):
    """
    Raised when a period descriptor is invalid.

    Period must be in YYYY-MM format (e.g., '2025-01') or empty for all-time.
    """

    pass


class InvalidMealChartDateError(SettlementServiceError):
    """Raised when the dinner date is not a YYYY-MM-DD calendar date."""

    pass


class DataAccessError(SettlementServiceError):
    """
    Raised when the data store cannot serve a read.

    Computations never continue with partial data; the caller decides
    whether a fallback applies.
    """

    pass


class AggregateUnavailableError(DataAccessError):
    """Raised when the privileged global aggregate operation is not available."""

    pass
