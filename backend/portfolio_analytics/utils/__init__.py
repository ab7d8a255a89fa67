# backend/portfolio_analytics/utils/__init__.py
"""
Cross-cutting utilities for Portfolio Analytics.

- logging: root logger setup with request context on every record
- context: contextvars for correlation ID and user ID
- date_utils: ISO date parsing at the boundary and day arithmetic

Usage:
    from portfolio_analytics.utils import setup_logging
    from portfolio_analytics.utils import get_correlation_id, set_correlation_id
    from portfolio_analytics.utils.date_utils import parse_iso_date
"""

from portfolio_analytics.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_user_id,
    set_user_id,
    clear_request_context,
)
from portfolio_analytics.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_user_id",
    "set_user_id",
    "clear_request_context",
]
