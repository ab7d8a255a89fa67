# backend/portfolio_analytics/routers/portfolio.py
"""
Portfolio analytics endpoints.

- GET  /users/{user_id}/portfolio/summary - Point-in-time value, TWR, risk, benchmarks
- GET  /users/{user_id}/portfolio/history - Value / cost / TWR on every cached price date
- GET  /users/{user_id}/portfolio/benchmarks/{ticker} - One benchmark replay
- POST /users/{user_id}/portfolio/refresh-prices - Reprice lots from cached quotes

Dates are ISO-8601 strings. A full timestamp is accepted and truncated to
its date. Omitted dates default to today, the only place the clock is read.

A user with no lots is not an error: every read endpoint returns zeros or an
empty list.
"""

from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session

from portfolio_analytics.database import get_db
from portfolio_analytics.dependencies import get_analytics_service, get_pricing_service
from portfolio_analytics.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_ANALYTICS,
    RATE_LIMIT_WRITE,
)
from portfolio_analytics.schemas.portfolio import (
    BenchmarkMetricsResponse,
    HistoricalPointResponse,
    PortfolioSummaryResponse,
    PriceRefreshResponse,
)
from portfolio_analytics.schemas.validators import validate_ticker
from portfolio_analytics.services.analytics import (
    AnalyticsService,
    BenchmarkMetrics,
    HistoricalPoint,
    PortfolioSummary,
)
from portfolio_analytics.services.exceptions import InvalidTickerError
from portfolio_analytics.services.pricing_service import LotPricingService
from portfolio_analytics.utils.context import set_user_id
from portfolio_analytics.utils.date_utils import parse_optional_date

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/users/{user_id}/portfolio",
    tags=["Portfolio"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _resolve_date(value: str | None, field: str) -> date:
    """Parse an optional ISO date query parameter; omitted or blank means today."""
    parsed = parse_optional_date(value, field=field)
    return date.today() if parsed is None else parsed


def _resolve_ticker(value: str) -> str:
    """Normalize a ticker parameter, raising InvalidTickerError (400) when malformed."""
    try:
        return validate_ticker(value)
    except ValueError:
        raise InvalidTickerError(value) from None


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_benchmark(metrics: BenchmarkMetrics) -> BenchmarkMetricsResponse:
    return BenchmarkMetricsResponse.model_validate(asdict(metrics))


def _map_summary(summary: PortfolioSummary) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse(
        valuation_date=summary.valuation_date,
        total_value=summary.total_value,
        total_cost=summary.total_cost,
        realized_gain_loss=summary.realized_gain_loss,
        time_weighted_return=summary.time_weighted_return,
        annualized_volatility=summary.annualized_volatility,
        sharpe_ratio=summary.sharpe_ratio,
        holdings=summary.holdings,
        benchmarks={
            ticker: _map_benchmark(metrics)
            for ticker, metrics in summary.benchmarks.items()
        },
    )


def _map_point(point: HistoricalPoint) -> HistoricalPointResponse:
    return HistoricalPointResponse.model_validate(asdict(point))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/summary",
    response_model=PortfolioSummaryResponse,
    summary="Get portfolio summary",
    response_description="Value, cost, realized gain, TWR, risk and benchmark replays"
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_portfolio_summary(
        request: Request,  # Required for rate limiting
        user_id: str = Path(..., min_length=1, max_length=255),
        valuation_date: str | None = Query(
            default=None,
            description="ISO date to value the portfolio at (default: today)",
        ),
        db: Session = Depends(get_db),
        service: AnalyticsService = Depends(get_analytics_service),
) -> PortfolioSummaryResponse:
    """
    Point-in-time portfolio summary.

    Returns are decimals (0.155 = 15.5%). The time-weighted return is
    annualized only when the earliest contributing lot is a year or more
    before the valuation date.

    Raises **400** for a malformed valuation_date.
    """
    set_user_id(user_id)
    as_of = _resolve_date(valuation_date, "valuation_date")

    summary = service.get_summary(db, user_id, as_of)
    return _map_summary(summary)


@router.get(
    "/history",
    response_model=list[HistoricalPointResponse],
    summary="Get historical portfolio series",
    response_description="One point per cached price date, ascending"
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_portfolio_history(
        request: Request,  # Required for rate limiting
        user_id: str = Path(..., min_length=1, max_length=255),
        benchmark_ticker: str | None = Query(
            default=None,
            description="Benchmark to compare against (e.g., 'VOO')",
        ),
        db: Session = Depends(get_db),
        service: AnalyticsService = Depends(get_analytics_service),
) -> list[HistoricalPointResponse]:
    """
    Value, cost, gain/loss and time-weighted return on every cached price
    date from the first acquisition onward.

    Returns here are percentages (15.5 = 15.5%), annualized like the summary
    only when the span from the first acquisition is 365 days or more.

    Raises **400** for a malformed benchmark_ticker.
    """
    set_user_id(user_id)
    ticker = _resolve_ticker(benchmark_ticker) if benchmark_ticker else None

    points = service.get_historical_series(db, user_id, benchmark_ticker=ticker)
    return [_map_point(point) for point in points]


@router.get(
    "/benchmarks/{ticker}",
    response_model=BenchmarkMetricsResponse,
    summary="Get one benchmark replay",
    response_description="The active lots replayed into the benchmark"
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_benchmark_metrics(
        request: Request,  # Required for rate limiting
        user_id: str = Path(..., min_length=1, max_length=255),
        ticker: str = Path(..., description="Benchmark symbol (e.g., 'QQQ')"),
        as_of: str | None = Query(
            default=None,
            description="ISO date to value the replay at (default: today)",
        ),
        db: Session = Depends(get_db),
        service: AnalyticsService = Depends(get_analytics_service),
) -> BenchmarkMetricsResponse:
    """
    What the active lots would be worth had each lot's cost basis bought
    the benchmark on its acquisition date.

    Any benchmark with a cached price history works, not only the defaults.

    Raises **400** for a malformed ticker or as_of date.
    """
    set_user_id(user_id)
    symbol = _resolve_ticker(ticker)
    as_of_date = _resolve_date(as_of, "as_of")

    metrics = service.get_benchmark_metrics(db, user_id, symbol, as_of_date)
    return _map_benchmark(metrics)


@router.post(
    "/refresh-prices",
    response_model=PriceRefreshResponse,
    summary="Reprice lots from cached quotes",
    response_description="Lots updated and tickers skipped"
)
@limiter.limit(RATE_LIMIT_WRITE)
def refresh_prices(
        request: Request,  # Required for rate limiting
        user_id: str = Path(..., min_length=1, max_length=255),
        db: Session = Depends(get_db),
        service: LotPricingService = Depends(get_pricing_service),
) -> PriceRefreshResponse:
    """
    Rewrite the USD price, value and cost fields of every lot from the
    latest cached quote and FX rate.

    Tickers without a cached quote are left untouched and listed in
    ``skipped_tickers``. Currencies without a cached USD rate are priced as
    USD and listed in ``fx_fallbacks``.
    """
    set_user_id(user_id)

    result = service.refresh_lots(db, user_id)
    return PriceRefreshResponse(
        user_id=result.user_id,
        lots_updated=result.lots_updated,
        tickers_refreshed=result.tickers_refreshed,
        skipped_tickers=result.skipped_tickers,
        fx_fallbacks=result.fx_fallbacks,
    )
