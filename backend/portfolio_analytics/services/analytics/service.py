# backend/portfolio_analytics/services/analytics/service.py
"""
Analytics Service - Main orchestrator for portfolio analytics.

Loads one user's lots and the cached price histories they need, then hands
that snapshot to the pure calculators:

    LotRepository + PriceSeriesProvider
        ↓
    partition_lots (valuation-date filter)
        ↓
    returns (HPR / TWR)   risk (volatility / Sharpe)
        ↓
    BenchmarkReplicator (same routines, benchmark prices)
        ↓
    PortfolioSummary / list[HistoricalPoint] / BenchmarkMetrics

The build_* functions are the pure core: they take the snapshot and a
reference date and never touch the database or the clock. AnalyticsService
only fetches the snapshot and calls them.

Missing data is never an error here. No lots, no cached prices or too few
daily values all produce zero-valued metrics.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from sqlalchemy.orm import Session

from portfolio_analytics.services.analytics.benchmark import BenchmarkReplicator
from portfolio_analytics.services.analytics.filters import distinct_tickers, partition_lots
from portfolio_analytics.services.analytics.history import HistoryAssembler
from portfolio_analytics.services.analytics.returns import (
    calculate_twr,
    collect_mark_to_market_returns,
)
from portfolio_analytics.services.analytics.risk import (
    RiskCalculator,
    collect_price_dates,
    holding_valuer,
    restrict_dates,
)
from portfolio_analytics.services.analytics.types import (
    BenchmarkMetrics,
    HistoricalPoint,
    Lot,
    LotPartition,
    LotReturn,
    PortfolioSummary,
    PriceSeries,
)
from portfolio_analytics.services.constants import (
    DEFAULT_BENCHMARK_TICKERS,
    DEFAULT_RISK_FREE_RATE,
)
from portfolio_analytics.services.protocols import LotRepository, PriceSeriesProvider

logger = logging.getLogger(__name__)


# =============================================================================
# PURE SNAPSHOT FUNCTIONS
# =============================================================================

def portfolio_price_dates(
        partition: LotPartition,
        price_series: Mapping[str, PriceSeries],
        lot_returns: Sequence[LotReturn],
) -> list[date]:
    """
    Date grid for the portfolio's daily values.

    Union of the held tickers' price dates, from the earliest lot that
    contributes to the TWR up to the valuation date. No contributing lot
    means no grid.
    """
    held_series = [
        price_series[ticker]
        for ticker in distinct_tickers(partition.relevant)
        if ticker in price_series
    ]
    start = min((lr.date_acquired for lr in lot_returns), default=None)
    return restrict_dates(collect_price_dates(held_series), start, partition.reference_date)


def build_summary(
        lots: Iterable[Lot],
        price_series: Mapping[str, PriceSeries],
        valuation_date: date,
        benchmark_tickers: Sequence[str] = DEFAULT_BENCHMARK_TICKERS,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> PortfolioSummary:
    """
    Point-in-time summary as of ``valuation_date``.

    Args:
        lots: Every lot of the user
        price_series: Cached histories for held tickers and benchmarks
        valuation_date: Reference date
        benchmark_tickers: Benchmarks to replay, in output order
        risk_free_rate: Annual rate for the Sharpe ratios

    Returns:
        PortfolioSummary; the all-zero summary when nothing was acquired
        by the valuation date
    """
    partition = partition_lots(lots, valuation_date)
    if partition.is_empty:
        return PortfolioSummary.empty(valuation_date, benchmark_tickers)

    total_value = sum(lot.market_value_usd for lot in partition.active)
    total_cost = sum(lot.usd_cost for lot in partition.active)
    realized_gain_loss = sum(lot.disposal_value_usd - lot.usd_cost for lot in partition.sold)

    lot_returns = collect_mark_to_market_returns(partition)
    time_weighted_return = calculate_twr(lot_returns, valuation_date)

    dates = portfolio_price_dates(partition, price_series, lot_returns)
    risk = RiskCalculator.calculate_for_lots(
        dates, partition.relevant, holding_valuer(price_series), risk_free_rate
    )

    replicator = BenchmarkReplicator(risk_free_rate=risk_free_rate)
    benchmarks = {
        ticker: replicator.replicate(
            ticker, price_series.get(ticker), partition.active, valuation_date, dates
        )
        for ticker in benchmark_tickers
    }

    return PortfolioSummary(
        valuation_date=valuation_date,
        total_value=total_value,
        total_cost=total_cost,
        realized_gain_loss=realized_gain_loss,
        time_weighted_return=time_weighted_return,
        annualized_volatility=risk.annualized_volatility,
        sharpe_ratio=risk.sharpe_ratio,
        holdings=len(partition.active),
        benchmarks=benchmarks,
    )


def build_benchmark_metrics(
        lots: Iterable[Lot],
        price_series: Mapping[str, PriceSeries],
        ticker: str,
        as_of: date,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> BenchmarkMetrics:
    """
    Metrics of one benchmark replay as of ``as_of``.

    Identical to the entry build_summary produces for the same ticker.
    """
    partition = partition_lots(lots, as_of)
    if partition.is_empty:
        return BenchmarkMetrics(ticker=ticker)

    lot_returns = collect_mark_to_market_returns(partition)
    dates = portfolio_price_dates(partition, price_series, lot_returns)

    return BenchmarkReplicator(risk_free_rate=risk_free_rate).replicate(
        ticker, price_series.get(ticker), partition.active, as_of, dates
    )


def build_historical_series(
        lots: Iterable[Lot],
        price_series: Mapping[str, PriceSeries],
        benchmark_ticker: str | None = None,
) -> list[HistoricalPoint]:
    """Historical series, optionally compared against ``benchmark_ticker``."""
    all_lots = list(lots)
    benchmark = price_series.get(benchmark_ticker) if benchmark_ticker else None
    held = {
        ticker: price_series[ticker]
        for ticker in distinct_tickers(all_lots)
        if ticker in price_series
    }
    return HistoryAssembler().assemble(all_lots, held, benchmark)


# =============================================================================
# ANALYTICS SERVICE
# =============================================================================

class AnalyticsService:
    """
    Fetches a user's snapshot and runs the analytics on it.

    Stateless between calls, so one instance is shared by all requests.

    Attributes:
        risk_free_rate: Annual rate used by every Sharpe ratio
        benchmark_tickers: Benchmarks included in the summary
    """

    def __init__(
            self,
            lot_repository: LotRepository | None = None,
            price_provider: PriceSeriesProvider | None = None,
            risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
            benchmark_tickers: Iterable[str] = DEFAULT_BENCHMARK_TICKERS,
    ):
        """
        Initialize the Analytics Service.

        Args:
            lot_repository: Lot source. If None, uses the SQLAlchemy adapter.
            price_provider: Price history source. If None, uses the SQLAlchemy adapter.
            risk_free_rate: Annual risk-free rate (0.04 = 4%)
            benchmark_tickers: Benchmarks included in the summary
        """
        # Lazy import to avoid circular dependencies
        if lot_repository is None or price_provider is None:
            from portfolio_analytics.services.repositories import (
                SqlLotRepository,
                SqlPriceSeriesProvider,
            )
            lot_repository = lot_repository or SqlLotRepository()
            price_provider = price_provider or SqlPriceSeriesProvider()

        self._lot_repository: LotRepository = lot_repository
        self._price_provider: PriceSeriesProvider = price_provider
        self.risk_free_rate = risk_free_rate
        self.benchmark_tickers: tuple[str, ...] = tuple(t.upper() for t in benchmark_tickers)

        logger.info(
            f"AnalyticsService initialized: risk_free_rate={risk_free_rate}, "
            f"benchmarks={','.join(self.benchmark_tickers)}"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_summary(
            self,
            db: Session,
            user_id: str,
            valuation_date: date,
    ) -> PortfolioSummary:
        """
        Portfolio summary as of ``valuation_date``.

        The caller supplies the date; "today" is decided at the HTTP layer.
        """
        lots = self._lot_repository.list_lots(db, user_id)
        logger.info(f"Calculating summary for user {user_id} as of {valuation_date} ({len(lots)} lots)")

        if not lots:
            return PortfolioSummary.empty(valuation_date, self.benchmark_tickers)

        relevant_tickers = distinct_tickers(lot for lot in lots if lot.is_relevant_on(valuation_date))
        price_series = self._price_provider.get_price_series(
            db, [*relevant_tickers, *self.benchmark_tickers]
        )

        return build_summary(
            lots,
            price_series,
            valuation_date,
            benchmark_tickers=self.benchmark_tickers,
            risk_free_rate=self.risk_free_rate,
        )

    def get_historical_series(
            self,
            db: Session,
            user_id: str,
            benchmark_ticker: str | None = None,
    ) -> list[HistoricalPoint]:
        """
        Value, cost, gain/loss and TWR on every cached price date.

        Returns:
            Points ascending by date; empty when the user has no lots
        """
        lots = self._lot_repository.list_lots(db, user_id)
        if not lots:
            return []

        benchmark_ticker = benchmark_ticker.upper() if benchmark_ticker else None
        tickers = distinct_tickers(lots)
        if benchmark_ticker:
            tickers.append(benchmark_ticker)

        price_series = self._price_provider.get_price_series(db, tickers)
        points = build_historical_series(lots, price_series, benchmark_ticker)

        logger.info(
            f"Built historical series for user {user_id}: {len(points)} points"
            + (f", benchmark={benchmark_ticker}" if benchmark_ticker else "")
        )
        return points

    def get_benchmark_metrics(
            self,
            db: Session,
            user_id: str,
            ticker: str,
            as_of: date,
    ) -> BenchmarkMetrics:
        """Replay the lots held at ``as_of`` against one benchmark."""
        ticker = ticker.upper()
        lots = self._lot_repository.list_lots(db, user_id)
        if not lots:
            return BenchmarkMetrics(ticker=ticker)

        relevant_tickers = distinct_tickers(lot for lot in lots if lot.is_relevant_on(as_of))
        price_series = self._price_provider.get_price_series(db, [*relevant_tickers, ticker])

        return build_benchmark_metrics(
            lots, price_series, ticker, as_of, risk_free_rate=self.risk_free_rate
        )
