# backend/portfolio_analytics/services/analytics/history.py
"""
Historical series assembly.

One HistoricalPoint per distinct date found in the held tickers' cached price
histories, from the earliest acquisition onward. Each point revalues the
portfolio from scratch as of its own date:

    total_value = Σ units * close on or before date     (lots held that day)
    total_cost  = Σ usd_cost                            (only lots that had a price)
    TWR         = price-based HPRs linked and annualized to that date

Both return fields are reported as percentages.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date

from portfolio_analytics.services.analytics.benchmark import BenchmarkReplicator
from portfolio_analytics.services.analytics.filters import (
    distinct_tickers,
    earliest_acquisition,
    lots_active_on,
)
from portfolio_analytics.services.analytics.returns import (
    calculate_twr,
    collect_price_based_returns,
)
from portfolio_analytics.services.analytics.risk import collect_price_dates, restrict_dates
from portfolio_analytics.services.analytics.types import HistoricalPoint, Lot, PriceSeries
from portfolio_analytics.services.constants import PERCENT_SCALE

logger = logging.getLogger(__name__)


class HistoryAssembler:
    """Builds the ascending historical series for one user's lots."""

    def assemble(
            self,
            lots: Iterable[Lot],
            price_series: Mapping[str, PriceSeries],
            benchmark: PriceSeries | None = None,
    ) -> list[HistoricalPoint]:
        """
        Assemble the series.

        Args:
            lots: Every lot of the user, held or sold
            price_series: Cached history per held ticker
            benchmark: Optional benchmark history for the comparison TWR

        Returns:
            Points ascending by date; empty when there are no lots or no
            cached prices on or after the first acquisition
        """
        all_lots = list(lots)
        start = earliest_acquisition(all_lots)
        if start is None:
            return []

        held_series = [
            price_series[ticker]
            for ticker in distinct_tickers(all_lots)
            if ticker in price_series
        ]
        dates = restrict_dates(collect_price_dates(held_series), start)

        logger.debug(
            f"Assembling history for {len(all_lots)} lots over {len(dates)} price dates"
        )

        return [
            self._point_on(on_date, all_lots, price_series, benchmark)
            for on_date in dates
        ]

    @staticmethod
    def _point_on(
            on_date: date,
            lots: list[Lot],
            price_series: Mapping[str, PriceSeries],
            benchmark: PriceSeries | None,
    ) -> HistoricalPoint:
        held = lots_active_on(lots, on_date)

        total_value = 0.0
        total_cost = 0.0
        for lot in held:
            series = price_series.get(lot.ticker)
            if series is None:
                continue
            point = series.price_on_or_before(on_date)
            if point is None:
                continue
            total_value += point.adj_close * lot.units
            total_cost += lot.usd_cost

        twr = calculate_twr(collect_price_based_returns(held, price_series, on_date), on_date)
        benchmark_twr = BenchmarkReplicator.time_weighted_return(benchmark, held, on_date)

        return HistoricalPoint(
            date=on_date,
            total_value=total_value,
            total_cost=total_cost,
            gain_loss=total_value - total_cost,
            time_weighted_return=twr * PERCENT_SCALE,
            benchmark_time_weighted_return=benchmark_twr * PERCENT_SCALE,
        )
