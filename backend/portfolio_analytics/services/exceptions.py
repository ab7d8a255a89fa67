# backend/portfolio_analytics/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Missing or insufficient market data is never an error in this service: the
analytics degrade to zero-valued metrics instead. Exceptions are reserved for
callers that break the input contract.

Exception Hierarchy:
    ServiceError (base)
    └── ValidationError
        ├── InvalidDateError
        └── InvalidTickerError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    This is for programmatic validation errors (malformed dates, bad ticker
    symbols), NOT for request body validation which is handled by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidDateError(ValidationError):
    """
    Raised when a boundary date string is not ISO ``YYYY-MM-DD``.

    Attributes:
        value: The rejected input
    """

    def __init__(self, value: object, field: str | None = None) -> None:
        self.value = value
        super().__init__(
            f"Invalid date: {value!r}. Expected format YYYY-MM-DD",
            field=field,
        )


class InvalidTickerError(ValidationError):
    """
    Raised when a ticker symbol cannot be normalized.

    Attributes:
        ticker: The rejected symbol
    """

    def __init__(self, ticker: object) -> None:
        self.ticker = ticker
        super().__init__(f"Invalid ticker symbol: {ticker!r}", field="ticker")


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidDateError",
    "InvalidTickerError",
]
