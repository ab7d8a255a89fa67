# backend/portfolio_analytics/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- portfolio: Summary, historical series, benchmark and price refresh responses
- errors: Error response formats
- validators: Reusable validation functions (ticker)

Usage:
    from portfolio_analytics.schemas import PortfolioSummaryResponse
    from portfolio_analytics.schemas import ErrorDetail
"""

from portfolio_analytics.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
)
from portfolio_analytics.schemas.portfolio import (
    BenchmarkMetricsResponse,
    HistoricalPointResponse,
    PortfolioSummaryResponse,
    PriceRefreshResponse,
)
from portfolio_analytics.schemas.validators import (
    validate_ticker,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Portfolio analytics
    "BenchmarkMetricsResponse",
    "HistoricalPointResponse",
    "PortfolioSummaryResponse",
    "PriceRefreshResponse",
    # Validators
    "validate_ticker",
]
