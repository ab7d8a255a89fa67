# backend/portfolio_analytics/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests. The services hold no per-request state, so one instance each
is enough.

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from portfolio_analytics.dependencies import get_analytics_service

    @router.get("/summary")
    def get_summary(
        service: AnalyticsService = Depends(get_analytics_service),
    ):
        ...

Tests swap implementations with ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from portfolio_analytics.config import settings
from portfolio_analytics.services.analytics.service import AnalyticsService
from portfolio_analytics.services.pricing_service import LotPricingService
from portfolio_analytics.services.repositories import (
    SqlLotRepository,
    SqlPriceSeriesProvider,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_lot_repository / get_price_provider (no deps)
# 2. get_analytics_service (depends on both)
# 3. get_pricing_service (depends on provider)


@lru_cache(maxsize=1)
def get_lot_repository() -> SqlLotRepository:
    """Get the singleton lot repository."""
    logger.debug("Initializing singleton SqlLotRepository")
    return SqlLotRepository()


@lru_cache(maxsize=1)
def get_price_provider() -> SqlPriceSeriesProvider:
    """Get the singleton price history / quote provider."""
    logger.debug("Initializing singleton SqlPriceSeriesProvider")
    return SqlPriceSeriesProvider()


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    """
    Get the singleton AnalyticsService instance.

    Risk-free rate and benchmark list come from settings, so they can be
    changed per deployment through RISK_FREE_RATE and BENCHMARK_TICKERS.
    """
    logger.debug("Initializing singleton AnalyticsService")
    return AnalyticsService(
        lot_repository=get_lot_repository(),
        price_provider=get_price_provider(),
        risk_free_rate=settings.risk_free_rate,
        benchmark_tickers=settings.benchmark_tickers,
    )


@lru_cache(maxsize=1)
def get_pricing_service() -> LotPricingService:
    """Get the singleton LotPricingService instance."""
    logger.debug("Initializing singleton LotPricingService")
    return LotPricingService(price_provider=get_price_provider())
