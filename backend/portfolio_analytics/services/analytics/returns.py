# backend/portfolio_analytics/services/analytics/returns.py
"""
Return calculation functions for the Analytics Service.

Pure functions for per-lot holding-period returns and their geometric
linking into a time-weighted return:

Formulas:
    HPR = (value - cost) / cost                 (only when cost > 0 and value > 0)

    TWR (lot linking method):
        cumulative = ∏(1 + HPR_i) - 1           (lots ascending by date_acquired)

    Annualized TWR:
        days >= 365:  (1 + cumulative)^(365/days) - 1
        days <  365:  cumulative                (short spans are not annualized)

    days = max(1, whole days from earliest contributing lot to end date)

Linking per lot rather than weighting by size keeps the result independent of
how much was invested when. Every lot with a positive HPR guard contributes
equally, however large or small.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date

from portfolio_analytics.services.analytics.types import (
    Lot,
    LotPartition,
    LotReturn,
    PriceSeries,
)
from portfolio_analytics.services.constants import (
    CALENDAR_DAYS_PER_YEAR,
    MIN_DAYS_FOR_ANNUALIZATION,
)
from portfolio_analytics.utils.date_utils import days_between

logger = logging.getLogger(__name__)


# =============================================================================
# HOLDING-PERIOD RETURN
# =============================================================================

def holding_period_return(cost: float, value: float) -> float | None:
    """
    Return of one lot over its life.

    Formula: (value - cost) / cost

    Args:
        cost: USD cost basis
        value: USD terminal value (mark-to-market or sale proceeds)

    Returns:
        HPR as decimal, or None when cost or value is not positive.
        Such lots are left out of the TWR entirely.
    """
    if cost <= 0 or value <= 0:
        return None
    return (value - cost) / cost


def build_lot_return(date_acquired: date, cost: float, value: float) -> LotReturn | None:
    """LotReturn for one lot, or None if the positivity guard rejects it."""
    hpr = holding_period_return(cost, value)
    if hpr is None:
        return None
    return LotReturn(date_acquired=date_acquired, hpr=hpr)


def collect_mark_to_market_returns(partition: LotPartition) -> list[LotReturn]:
    """
    HPRs from cached valuations.

    - Active lots are valued at current_value_usd
    - Sold lots at their disposal proceeds

    Args:
        partition: Lots split at the valuation date

    Returns:
        One LotReturn per contributing lot, active lots first
    """
    lot_returns: list[LotReturn] = []

    for lot in partition.active:
        lot_return = build_lot_return(lot.date_acquired, lot.usd_cost, lot.market_value_usd)
        if lot_return is not None:
            lot_returns.append(lot_return)

    for lot in partition.sold:
        lot_return = build_lot_return(lot.date_acquired, lot.usd_cost, lot.disposal_value_usd)
        if lot_return is not None:
            lot_returns.append(lot_return)

    excluded = len(partition.active) + len(partition.sold) - len(lot_returns)
    if excluded:
        logger.debug(f"Excluded {excluded} lot(s) with non-positive cost or value from TWR")

    return lot_returns


def collect_price_based_returns(
        lots: Iterable[Lot],
        price_series: Mapping[str, PriceSeries],
        on_date: date,
) -> list[LotReturn]:
    """
    HPRs with each lot valued at units * last adjusted close on or before on_date.

    Lots whose ticker has no series, or no point by on_date, are skipped.
    """
    lot_returns: list[LotReturn] = []

    for lot in lots:
        series = price_series.get(lot.ticker)
        if series is None:
            continue
        point = series.price_on_or_before(on_date)
        if point is None:
            continue
        lot_return = build_lot_return(lot.date_acquired, lot.usd_cost, point.adj_close * lot.units)
        if lot_return is not None:
            lot_returns.append(lot_return)

    return lot_returns


# =============================================================================
# TIME-WEIGHTED RETURN
# =============================================================================

def sort_lot_returns(lot_returns: Iterable[LotReturn]) -> list[LotReturn]:
    """Ascending by date_acquired; ties keep their input order."""
    return sorted(lot_returns, key=lambda lr: lr.date_acquired)


def link_returns(lot_returns: Iterable[LotReturn]) -> float:
    """
    Geometrically link HPRs.

    Formula: ∏(1 + HPR_i) - 1

    Returns:
        Cumulative return as decimal; 0 for no lots
    """
    growth = 1.0
    for lot_return in lot_returns:
        growth *= 1.0 + lot_return.hpr
    return growth - 1.0


def annualize_return(cumulative_return: float, days: int) -> float:
    """
    Scale a cumulative return to a 365-day rate.

    Formula: (1 + r)^(365/days) - 1

    Spans shorter than a year return ``cumulative_return`` unchanged; a year
    exactly returns it unchanged too, since the exponent is 1.

    Example:
        annualize_return(0.21, 730)   # about 0.10, two years at 10%
        annualize_return(0.05, 200)   # 0.05, under a year
    """
    if days < MIN_DAYS_FOR_ANNUALIZATION:
        return cumulative_return

    return math.pow(1.0 + cumulative_return, CALENDAR_DAYS_PER_YEAR / days) - 1.0


def calculate_twr(lot_returns: Iterable[LotReturn], end_date: date) -> float:
    """
    Time-weighted return of a set of lots up to ``end_date``.

    Steps:
        1. Sort contributing lots by acquisition date (stable)
        2. Link their HPRs geometrically
        3. Annualize over earliest acquisition -> end_date

    Args:
        lot_returns: LotReturns in any order
        end_date: Valuation date the span is measured to

    Returns:
        Annualized (or, under a year, cumulative) TWR as decimal;
        0 when no lot contributes
    """
    ordered = sort_lot_returns(lot_returns)
    if not ordered:
        return 0.0

    cumulative = link_returns(ordered)
    days = days_between(ordered[0].date_acquired, end_date)

    return annualize_return(cumulative, days)
