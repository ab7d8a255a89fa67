# backend/portfolio_analytics/services/analytics/benchmark.py
"""
Benchmark replication for the Analytics Service.

Answers "what would my held lots be worth if every dollar of their cost basis
had bought the benchmark ETF on the lot's acquisition date instead?"

For each lot:
    shares = usd_cost / benchmark close on or before date_acquired
    value  = shares * benchmark close on or before the reference date

The synthetic lots then go through the same HPR, TWR and risk routines as the
real portfolio (returns.py, risk.py); only the valuation rule differs.

A lot with no benchmark price at either end is left out. A benchmark with no
cached history yields all-zero metrics.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from portfolio_analytics.services.analytics.returns import build_lot_return, calculate_twr
from portfolio_analytics.services.analytics.risk import (
    LotValuer,
    RiskCalculator,
    restrict_dates,
)
from portfolio_analytics.services.analytics.types import (
    BenchmarkMetrics,
    Lot,
    LotReturn,
    PriceSeries,
)
from portfolio_analytics.services.constants import DEFAULT_RISK_FREE_RATE

logger = logging.getLogger(__name__)


def benchmark_valuer(benchmark: PriceSeries) -> LotValuer:
    """
    Value a lot as if its USD cost had bought ``benchmark`` at acquisition.

    Returns None for a lot when the benchmark has no close on or before its
    acquisition date or on or before the valuation date.
    """
    def value(lot: Lot, on_date: date) -> float | None:
        acquired = benchmark.price_on_or_before(lot.date_acquired)
        current = benchmark.price_on_or_before(on_date)
        if acquired is None or current is None or acquired.adj_close <= 0:
            return None
        shares = lot.usd_cost / acquired.adj_close
        return shares * current.adj_close

    return value


def _synthetic_lot_returns(
        lots: Iterable[Lot],
        valuer: LotValuer,
        on_date: date,
) -> tuple[list[LotReturn], float, int]:
    """(lot returns, total synthetic value, lots priced) as of on_date."""
    lot_returns: list[LotReturn] = []
    total_value = 0.0
    replicated = 0

    for lot in lots:
        value = valuer(lot, on_date)
        if value is None:
            continue
        replicated += 1
        total_value += value
        lot_return = build_lot_return(lot.date_acquired, lot.usd_cost, value)
        if lot_return is not None:
            lot_returns.append(lot_return)

    return lot_returns, total_value, replicated


class BenchmarkReplicator:
    """
    Replays a portfolio's active lots against benchmark price histories.

    Usage:
        replicator = BenchmarkReplicator(risk_free_rate=0.04)
        metrics = replicator.replicate(
            "VOO", voo_series, partition.active, valuation_date, portfolio_dates
        )
    """

    def __init__(self, risk_free_rate: float = DEFAULT_RISK_FREE_RATE) -> None:
        self._risk_free_rate = risk_free_rate

    def replicate(
            self,
            ticker: str,
            benchmark: PriceSeries | None,
            active_lots: Sequence[Lot],
            valuation_date: date,
            portfolio_dates: Sequence[date],
    ) -> BenchmarkMetrics:
        """
        Value, TWR, volatility and Sharpe of the replayed position.

        Args:
            ticker: Benchmark symbol, echoed in the result
            benchmark: Its cached history (None if never cached)
            active_lots: Lots held at valuation_date
            valuation_date: Reference date
            portfolio_dates: Date grid of the holdings' own price histories.
                Volatility is sampled on these dates so it lines up with the
                portfolio's figures.

        Returns:
            BenchmarkMetrics; zeros when the benchmark has no history
        """
        if benchmark is None or len(benchmark) == 0:
            logger.debug(f"No cached history for benchmark {ticker}")
            return BenchmarkMetrics(ticker=ticker)

        valuer = benchmark_valuer(benchmark)
        lot_returns, total_value, replicated = _synthetic_lot_returns(
            active_lots, valuer, valuation_date
        )

        time_weighted_return = calculate_twr(lot_returns, valuation_date)

        start = min((lr.date_acquired for lr in lot_returns), default=None)
        dates = restrict_dates(portfolio_dates, start, valuation_date)
        risk = RiskCalculator.calculate_for_lots(
            dates, active_lots, valuer, self._risk_free_rate
        )

        logger.debug(
            f"Benchmark {ticker}: replicated {replicated}/{len(active_lots)} lots, "
            f"value={total_value:.2f}, observations={risk.observations}"
        )

        return BenchmarkMetrics(
            ticker=ticker,
            total_value=total_value,
            time_weighted_return=time_weighted_return,
            annualized_volatility=risk.annualized_volatility,
            sharpe_ratio=risk.sharpe_ratio,
            lots_replicated=replicated,
        )

    @staticmethod
    def time_weighted_return(
            benchmark: PriceSeries | None,
            lots: Iterable[Lot],
            on_date: date,
    ) -> float:
        """TWR of the replayed position as of on_date; 0 without history."""
        if benchmark is None or len(benchmark) == 0:
            return 0.0
        lot_returns, _, _ = _synthetic_lot_returns(lots, benchmark_valuer(benchmark), on_date)
        return calculate_twr(lot_returns, on_date)
