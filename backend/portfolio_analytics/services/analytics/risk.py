# backend/portfolio_analytics/services/analytics/risk.py
"""
Risk calculation functions for the Analytics Service.

Rebuilds a daily portfolio value series from cached price history and derives
volatility and the Sharpe ratio from it. The lot valuation rule is a parameter
(``LotValuer``), so the same routines measure both the real holdings and a
replayed benchmark position.

Formulas:
    V_d = Σ value(lot, d)                  over lots held on d, skipping unpriced lots
    r_t = (V_t - V_{t-1}) / V_{t-1}

    σ_daily = sqrt(Σ(r - mean)² / N)      (population variance)
    Volatility (annualized) = σ_daily * √252

    Annualized return = (1 + mean)^252 - 1
    Sharpe Ratio = (annualized return - R_f) / volatility, 0 if volatility is 0
"""

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from statistics import fmean, pstdev

from portfolio_analytics.services.analytics.types import (
    Lot,
    PriceSeries,
    RiskMetrics,
)
from portfolio_analytics.services.constants import (
    DEFAULT_RISK_FREE_RATE,
    MIN_DAYS_FOR_VOLATILITY,
    TRADING_DAYS_PER_YEAR,
)

logger = logging.getLogger(__name__)

# Values one lot on one date; None when no price is known by that date
LotValuer = Callable[[Lot, date], float | None]


# =============================================================================
# PRICE DATE GRID
# =============================================================================

def collect_price_dates(price_series: Iterable[PriceSeries]) -> list[date]:
    """Sorted union of the dates of every series."""
    dates: set[date] = set()
    for series in price_series:
        dates.update(series.dates)
    return sorted(dates)


def restrict_dates(dates: Iterable[date], start: date | None, end: date | None = None) -> list[date]:
    """
    Dates within [start, end], inclusive.

    A None start means there is nothing to measure from and yields no dates.
    A None end leaves the range open.
    """
    if start is None:
        return []
    return [d for d in dates if d >= start and (end is None or d <= end)]


# =============================================================================
# DAILY VALUE RECONSTRUCTION
# =============================================================================

def holding_valuer(price_series: Mapping[str, PriceSeries]) -> LotValuer:
    """
    Value a lot as units * its own ticker's last adjusted close by the date.
    """
    def value(lot: Lot, on_date: date) -> float | None:
        series = price_series.get(lot.ticker)
        if series is None:
            return None
        point = series.price_on_or_before(on_date)
        if point is None:
            return None
        return point.adj_close * lot.units

    return value


def reconstruct_daily_values(
        dates: Iterable[date],
        lots: Iterable[Lot],
        valuer: LotValuer,
) -> list[float]:
    """
    Portfolio value on each date, keeping only positive totals.

    On each date only lots held at that date's close contribute. A date whose
    total is zero or negative (nothing priced yet) is dropped from the series
    rather than recorded as a zero, so it cannot produce a -100% return.

    Args:
        dates: Ascending dates to value
        lots: Candidate lots
        valuer: Per-lot valuation rule

    Returns:
        Positive daily values in date order (may be shorter than ``dates``)
    """
    candidates = list(lots)
    values: list[float] = []

    for on_date in dates:
        daily_value = 0.0
        for lot in candidates:
            if not lot.is_active_on(on_date):
                continue
            lot_value = valuer(lot, on_date)
            if lot_value is not None:
                daily_value += lot_value

        if daily_value > 0:
            values.append(daily_value)

    return values


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def calculate_daily_returns(daily_values: list[float]) -> list[float]:
    """
    Simple period-over-period returns.

    Formula: r_t = (V_t - V_{t-1}) / V_{t-1}

    Returns:
        One fewer return than values; empty for fewer than two values
    """
    if len(daily_values) < MIN_DAYS_FOR_VOLATILITY:
        return []

    returns = []
    for i in range(1, len(daily_values)):
        prev_value = daily_values[i - 1]
        if prev_value <= 0:
            continue
        returns.append((daily_values[i] - prev_value) / prev_value)

    return returns


# =============================================================================
# VOLATILITY
# =============================================================================

def calculate_volatility(daily_returns: list[float], annualize: bool = True) -> float:
    """
    Population standard deviation of daily returns.

    Args:
        daily_returns: Simple daily returns
        annualize: Multiply by √252

    Returns:
        Volatility as decimal (0.20 = 20%); 0 for no returns
    """
    if not daily_returns:
        return 0.0

    vol = pstdev(daily_returns)
    if annualize:
        vol *= math.sqrt(TRADING_DAYS_PER_YEAR)
    return vol


def annualize_daily_return(average_daily_return: float) -> float:
    """Formula: (1 + mean)^252 - 1"""
    return math.pow(1.0 + average_daily_return, TRADING_DAYS_PER_YEAR) - 1.0


# =============================================================================
# SHARPE RATIO
# =============================================================================

def calculate_sharpe_ratio(
        annualized_return: float,
        volatility: float,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Calculate Sharpe Ratio.

    Formula: Sharpe = (R_p - R_f) / σ_p

    Args:
        annualized_return: Annualized mean daily return
        volatility: Annualized volatility
        risk_free_rate: Annual risk-free rate (default 4%)

    Returns:
        Sharpe ratio; 0 when volatility is not positive
    """
    if volatility <= 0:
        return 0.0
    return (annualized_return - risk_free_rate) / volatility


# =============================================================================
# COMBINED RISK CALCULATOR
# =============================================================================

class RiskCalculator:
    """
    Volatility and Sharpe ratio from a daily value series in one call.
    """

    @staticmethod
    def calculate_all(
            daily_values: list[float],
            risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    ) -> RiskMetrics:
        """
        Calculate all risk metrics.

        Args:
            daily_values: Positive portfolio values in date order
            risk_free_rate: Annual risk-free rate

        Returns:
            RiskMetrics; all zeros with fewer than two values
        """
        result = RiskMetrics(observations=len(daily_values))

        daily_returns = calculate_daily_returns(daily_values)
        if not daily_returns:
            logger.debug(
                f"Insufficient data for risk metrics: {len(daily_values)} daily value(s)"
            )
            return result

        result.average_daily_return = fmean(daily_returns)
        result.daily_volatility = calculate_volatility(daily_returns, annualize=False)
        result.annualized_volatility = result.daily_volatility * math.sqrt(TRADING_DAYS_PER_YEAR)
        result.annualized_return = annualize_daily_return(result.average_daily_return)
        result.sharpe_ratio = calculate_sharpe_ratio(
            result.annualized_return,
            result.annualized_volatility,
            risk_free_rate,
        )

        return result

    @staticmethod
    def calculate_for_lots(
            dates: Iterable[date],
            lots: Iterable[Lot],
            valuer: LotValuer,
            risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    ) -> RiskMetrics:
        """Reconstruct daily values with ``valuer`` and measure them."""
        daily_values = reconstruct_daily_values(dates, lots, valuer)
        return RiskCalculator.calculate_all(daily_values, risk_free_rate)
