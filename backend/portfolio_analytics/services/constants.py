# backend/portfolio_analytics/services/constants.py
"""
Centralized constants for the Portfolio Analytics services.

This module provides a single source of truth for the business constants
used across the application. Centralizing these values:

1. Prevents inconsistencies from duplicate definitions
2. Makes it easy to tune parameters in one place
3. Documents the meaning and units of each constant

Usage:
    from portfolio_analytics.services.constants import (
        TRADING_DAYS_PER_YEAR,
        DEFAULT_RISK_FREE_RATE,
        DEFAULT_BENCHMARK_TICKERS,
    )
"""


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Standard number of trading days in a year (excludes weekends and holidays)
# Used for annualizing volatility and the mean daily return in the Sharpe ratio
TRADING_DAYS_PER_YEAR: int = 252

# Standard number of calendar days in a year
# Used for annualizing the time-weighted return
CALENDAR_DAYS_PER_YEAR: int = 365

# Minimum span (calendar days) before a time-weighted return is annualized.
# Shorter spans report the raw cumulative return.
MIN_DAYS_FOR_ANNUALIZATION: int = CALENDAR_DAYS_PER_YEAR


# =============================================================================
# RISK-FREE RATE
# =============================================================================

# Risk-free rate for the Sharpe ratio
# Represents approximate yield on short-term government bonds
# 4% = 0.04 as a decimal
DEFAULT_RISK_FREE_RATE: float = 0.04


# =============================================================================
# RISK CALCULATION CONSTANTS
# =============================================================================

# Minimum valid daily portfolio values needed to derive a daily return
MIN_DAYS_FOR_VOLATILITY: int = 2


# =============================================================================
# DEFAULT BENCHMARKS
# =============================================================================

# Index ETFs the portfolio is replayed against
DEFAULT_BENCHMARK_TICKERS: tuple[str, ...] = (
    "VOO",  # Vanguard S&P 500 ETF
    "QQQ",  # Invesco Nasdaq-100 ETF
    "DIA",  # SPDR Dow Jones Industrial Average ETF
)


# =============================================================================
# CURRENCY
# =============================================================================

# All valuation output is expressed in this currency
BASE_CURRENCY: str = "USD"


# =============================================================================
# OUTPUT UNITS
# =============================================================================

# Historical series report returns as percentages (0.15 -> 15.0).
# The point-in-time summary reports raw fractions.
PERCENT_SCALE: float = 100.0


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Limits are expressed as "X per Y" where Y is the time window
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit for read endpoints (GET requests)
RATE_LIMIT_DEFAULT: str = "100/minute"

# Rate limit for the price refresh endpoint (writes every lot of a user)
RATE_LIMIT_WRITE: str = "30/minute"

# Rate limit for health check endpoints
# Higher limit for monitoring tools that poll frequently
RATE_LIMIT_HEALTH: str = "300/minute"

# Analytics replay every lot against every price date, moderate limit
RATE_LIMIT_ANALYTICS: str = "30/minute"
