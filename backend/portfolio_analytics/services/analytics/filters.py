# backend/portfolio_analytics/services/analytics/filters.py
"""
Valuation-date filtering of lots.

Every analytics operation starts by asking which lots existed, and which were
still held, on some reference date. Dates are compared as calendar dates, so
a lot acquired or sold ON the reference date counts as acquired or sold.
"""

import logging
from collections.abc import Iterable
from datetime import date

from portfolio_analytics.services.analytics.types import Lot, LotPartition

logger = logging.getLogger(__name__)


def partition_lots(lots: Iterable[Lot], reference_date: date) -> LotPartition:
    """
    Split lots into relevant / active / sold as of ``reference_date``.

    Input order is preserved within each group.

    Args:
        lots: All lots of one user
        reference_date: Valuation date

    Returns:
        LotPartition; ``is_empty`` when nothing was acquired by the date
    """
    relevant = tuple(lot for lot in lots if lot.is_relevant_on(reference_date))
    active = tuple(lot for lot in relevant if lot.is_active_on(reference_date))
    sold = tuple(lot for lot in relevant if lot.is_sold_on(reference_date))

    logger.debug(
        f"Partitioned lots as of {reference_date}: "
        f"relevant={len(relevant)}, active={len(active)}, sold={len(sold)}"
    )

    return LotPartition(
        reference_date=reference_date,
        relevant=relevant,
        active=active,
        sold=sold,
    )


def lots_active_on(lots: Iterable[Lot], on_date: date) -> list[Lot]:
    """Lots held at the close of ``on_date``."""
    return [lot for lot in lots if lot.is_active_on(on_date)]


def distinct_tickers(lots: Iterable[Lot]) -> list[str]:
    """Tickers in first-seen order, without duplicates."""
    return list(dict.fromkeys(lot.ticker for lot in lots))


def earliest_acquisition(lots: Iterable[Lot]) -> date | None:
    """Earliest date_acquired, or None for no lots."""
    return min((lot.date_acquired for lot in lots), default=None)
