# backend/portfolio_analytics/schemas/validators.py
"""
Reusable validation functions for request parameters.

- Ticker validation and normalization

Routers call these on query and path parameters so that "voo", " VOO " and
"VOO" all address the same cached price history.
"""

import re

# =============================================================================
# CONSTANTS
# =============================================================================

# Ticker: 1-20 chars, alphanumeric + dots + carets (for indices like ^SPX)
TICKER_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-]{0,19}$')
TICKER_MAX_LENGTH = 20


# =============================================================================
# TICKER VALIDATION
# =============================================================================

def validate_ticker(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Valid formats:
    - Standard tickers: VOO, QQQ, AAPL
    - With dots or dashes: BRK.B, BRK-B
    - Indices with caret: ^GSPC

    Args:
        value: Raw ticker input

    Returns:
        Normalized ticker (uppercase, trimmed)

    Raises:
        ValueError: If ticker format is invalid
    """
    if not value or not value.strip():
        raise ValueError("Ticker cannot be empty")

    normalized = value.strip().upper()

    if len(normalized) > TICKER_MAX_LENGTH:
        raise ValueError(f"Ticker cannot exceed {TICKER_MAX_LENGTH} characters")

    if not TICKER_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{normalized}'. "
            "Ticker must be alphanumeric, may include dots (.) or dashes (-), "
            "or start with caret (^)"
        )

    return normalized
