# backend/portfolio_analytics/routers/__init__.py
"""
API routers for Portfolio Analytics.

- portfolio: Summary, historical series, benchmark replays and price refresh
"""

from portfolio_analytics.routers.portfolio import router as portfolio_router

__all__ = [
    "portfolio_router",
]
