# backend/portfolio_analytics/services/analytics/types.py
"""
Data types for the Analytics Service.

Inputs (Lot, PricePoint, PriceSeries) are immutable snapshots handed to the
calculators; results (RiskMetrics, BenchmarkMetrics, PortfolioSummary,
HistoricalPoint) are plain dataclasses. Amounts and returns are floats.

Architecture:
    - Lot: One purchase record, with derived USD cost / value rules
    - PriceSeries: Sorted adjusted-close history with on-or-before lookup
    - LotPartition: Relevant / active / sold split at a reference date
    - LotReturn: One lot's holding-period return, the unit TWR links
    - RiskMetrics: Volatility and Sharpe from a daily value series
    - BenchmarkMetrics: The same metrics for a replayed benchmark position
    - PortfolioSummary: Point-in-time result of get_summary
    - HistoricalPoint: One row of the historical series
"""

from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class Lot:
    """
    A single purchase of an instrument.

    Native-currency fields (unit_price, cost_basis, sold_unit_price) are in
    ``currency``. The *_usd fields are written by the pricing pass and may be
    None until a lot has been priced.

    Attributes:
        ticker: Upper-case instrument symbol
        date_acquired: Purchase date
        units: Quantity held
        cost_basis: unit_price * units, native currency
        date_sold: Disposal date, None while held
    """
    ticker: str
    date_acquired: date
    units: float
    cost_basis: float
    currency: str = "USD"
    account_id: int | None = None
    lot_id: int | None = None
    date_sold: date | None = None
    unit_price: float | None = None
    cost_basis_usd: float | None = None
    current_price_usd: float | None = None
    current_value_usd: float | None = None
    sold_unit_price: float | None = None
    sold_value_usd: float | None = None

    # -------------------------------------------------------------------------
    # Derived fields
    # -------------------------------------------------------------------------

    @property
    def usd_cost(self) -> float:
        """USD cost basis, falling back to the native cost basis when never priced."""
        if self.cost_basis_usd is not None:
            return self.cost_basis_usd
        return self.cost_basis

    @property
    def market_value_usd(self) -> float:
        """Latest mark-to-market value; 0 when never priced."""
        if self.current_value_usd is not None:
            return self.current_value_usd
        return 0.0

    @property
    def disposal_value_usd(self) -> float:
        """Sale proceeds: sold_value_usd, else sold_unit_price * units, else 0."""
        if self.sold_value_usd is not None:
            return self.sold_value_usd
        if self.sold_unit_price:
            return self.sold_unit_price * self.units
        return 0.0

    # -------------------------------------------------------------------------
    # State relative to a reference date
    # -------------------------------------------------------------------------

    def is_relevant_on(self, reference: date) -> bool:
        """Acquired on or before the reference date."""
        return self.date_acquired <= reference

    def is_active_on(self, reference: date) -> bool:
        """Acquired by the reference date and not yet sold on it."""
        return self.date_acquired <= reference and (
            self.date_sold is None or self.date_sold > reference
        )

    def is_sold_on(self, reference: date) -> bool:
        """Acquired and disposed of on or before the reference date."""
        return (
            self.date_acquired <= reference
            and self.date_sold is not None
            and self.date_sold <= reference
        )


@dataclass(frozen=True)
class PricePoint:
    """One adjusted close."""
    date: date
    adj_close: float


class PriceSeries:
    """
    Adjusted-close history for one ticker, sorted by date.

    Points may arrive in any order; they are sorted on construction. When the
    same date appears twice the last supplied point wins. Gaps (weekends,
    holidays, missing fetches) are expected and handled by
    ``price_on_or_before``.

    Example:
        >>> series = PriceSeries("VOO", [PricePoint(date(2024, 1, 3), 400.0)])
        >>> series.price_on_or_before(date(2024, 1, 5)).adj_close
        400.0
        >>> series.price_on_or_before(date(2024, 1, 2)) is None
        True
    """

    __slots__ = ("ticker", "updated_at", "_points", "_dates")

    def __init__(
            self,
            ticker: str,
            points: Iterable[PricePoint],
            updated_at: datetime | None = None,
    ) -> None:
        by_date: dict[date, PricePoint] = {}
        for point in points:
            by_date[point.date] = point

        self.ticker = ticker
        self.updated_at = updated_at
        self._points: tuple[PricePoint, ...] = tuple(
            by_date[d] for d in sorted(by_date)
        )
        self._dates: tuple[date, ...] = tuple(p.date for p in self._points)

    @property
    def points(self) -> tuple[PricePoint, ...]:
        return self._points

    @property
    def dates(self) -> tuple[date, ...]:
        return self._dates

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"PriceSeries(ticker={self.ticker!r}, points={len(self._points)})"

    def price_on_or_before(self, on_date: date) -> PricePoint | None:
        """
        Most recent point dated on or before ``on_date``.

        Binary search over the sorted dates, O(log n).

        Returns:
            The point, or None when the series starts after on_date
        """
        index = bisect_right(self._dates, on_date)
        if index == 0:
            return None
        return self._points[index - 1]


@dataclass(frozen=True)
class LotPartition:
    """
    Lots split at a reference date.

    relevant = acquired on or before the date
    active   = relevant and not yet sold
    sold     = relevant and sold on or before the date
    """
    reference_date: date
    relevant: tuple[Lot, ...]
    active: tuple[Lot, ...]
    sold: tuple[Lot, ...]

    @property
    def is_empty(self) -> bool:
        return not self.relevant


@dataclass(frozen=True)
class LotReturn:
    """
    Holding-period return of one lot.

    Attributes:
        date_acquired: Orders the lot in the geometric link
        hpr: (value - cost) / cost as a decimal (0.10 = 10%)
    """
    date_acquired: date
    hpr: float


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class RiskMetrics:
    """
    Volatility and Sharpe ratio of a daily value series.

    All fields are 0 when fewer than two valid daily values exist.

    Attributes:
        annualized_volatility: Population std dev of daily returns * sqrt(252)
        sharpe_ratio: (annualized_return - risk_free_rate) / annualized_volatility
        daily_volatility: Population std dev of daily returns
        average_daily_return: Arithmetic mean of daily returns
        annualized_return: (1 + average_daily_return)^252 - 1
        observations: Number of valid (positive) daily values used
    """
    annualized_volatility: float = 0.0
    sharpe_ratio: float = 0.0
    daily_volatility: float = 0.0
    average_daily_return: float = 0.0
    annualized_return: float = 0.0
    observations: int = 0


@dataclass
class BenchmarkMetrics:
    """
    Metrics of the counterfactual benchmark position.

    "What if every dollar of cost basis in each active lot had bought the
    benchmark on the lot's acquisition date?"

    Attributes:
        ticker: Benchmark symbol (e.g., "VOO")
        total_value: Value of the replayed position at the reference date
        time_weighted_return: Annualized per the summary rule, as a decimal
        lots_replicated: Active lots that had benchmark prices at both ends
    """
    ticker: str
    total_value: float = 0.0
    time_weighted_return: float = 0.0
    annualized_volatility: float = 0.0
    sharpe_ratio: float = 0.0
    lots_replicated: int = 0


@dataclass
class PortfolioSummary:
    """
    Point-in-time valuation and performance.

    Returns are decimals (0.15 = 15%). ``holdings`` counts active lots.
    """
    valuation_date: date
    total_value: float = 0.0
    total_cost: float = 0.0
    realized_gain_loss: float = 0.0
    time_weighted_return: float = 0.0
    annualized_volatility: float = 0.0
    sharpe_ratio: float = 0.0
    holdings: int = 0
    benchmarks: dict[str, BenchmarkMetrics] = field(default_factory=dict)

    @classmethod
    def empty(cls, valuation_date: date, benchmark_tickers: Iterable[str]) -> "PortfolioSummary":
        """All-zero summary with a zero entry per benchmark."""
        return cls(
            valuation_date=valuation_date,
            benchmarks={ticker: BenchmarkMetrics(ticker=ticker) for ticker in benchmark_tickers},
        )


@dataclass
class HistoricalPoint:
    """
    One date of the historical series.

    Unlike PortfolioSummary, the two return fields are percentages
    (15.0 = 15%).
    """
    date: date
    total_value: float
    total_cost: float
    gain_loss: float
    time_weighted_return: float
    benchmark_time_weighted_return: float = 0.0
