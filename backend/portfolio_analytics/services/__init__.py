# backend/portfolio_analytics/services/__init__.py
"""
Service layer for business logic.

Services encapsulate business logic separately from the API (router) layer:
- NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Collaborators are injected, so tests can pass in-memory fakes

Only the exceptions are re-exported here; import services from their modules
so that configuration and utilities can import constants without loading the
whole service layer.

Usage:
    from portfolio_analytics.services.analytics import AnalyticsService
    from portfolio_analytics.services.pricing_service import LotPricingService
    from portfolio_analytics.services import ServiceError, InvalidDateError

Architecture:
    services/
    ├── __init__.py                  # This file - exception exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants and limits
    ├── protocols.py                 # Collaborator interfaces (Protocol classes)
    ├── repositories.py              # SQLAlchemy lot / price cache adapters
    ├── pricing_service.py           # Lot pricing pass (USD snapshot fields)
    └── analytics/                   # Analytics engine
        ├── service.py               # Main analytics orchestrator
        ├── types.py                 # Lot, PriceSeries, result types
        ├── filters.py               # Valuation-date filter
        ├── returns.py               # HPR / TWR
        ├── risk.py                  # Volatility / Sharpe
        ├── benchmark.py             # Benchmark replication
        └── history.py               # Historical series
"""

from portfolio_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidDateError,
    InvalidTickerError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidDateError",
    "InvalidTickerError",
]
