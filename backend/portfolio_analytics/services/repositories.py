# backend/portfolio_analytics/services/repositories.py
"""
SQLAlchemy adapters for the analytics collaborators.

- SqlLotRepository: investments rows -> Lot snapshots
- SqlPriceSeriesProvider: historical_price_cache / market_data_cache -> PriceSeries / Quote

Cached price histories are written by an external fetcher and are trusted
only loosely: entries with an unparseable date or a missing or non-positive
adjClose are skipped with a warning, never raised. A partially bad cache
still yields a usable series.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_analytics.models import HistoricalPriceCache, Investment, MarketDataCache
from portfolio_analytics.services.analytics.types import Lot, PricePoint, PriceSeries
from portfolio_analytics.services.exceptions import InvalidDateError
from portfolio_analytics.utils.date_utils import parse_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """Latest cached quote, in the instrument's trading currency."""
    ticker: str
    price: float
    currency: str
    updated_at: datetime | None = None


# =============================================================================
# LOTS
# =============================================================================

def investment_to_lot(investment: Investment) -> Lot:
    """Snapshot one investments row."""
    return Lot(
        ticker=investment.ticker.upper(),
        date_acquired=investment.date_acquired,
        units=investment.units,
        cost_basis=investment.cost_basis,
        currency=investment.currency,
        account_id=investment.account_id,
        lot_id=investment.id,
        date_sold=investment.date_sold,
        unit_price=investment.unit_price,
        cost_basis_usd=investment.cost_basis_usd,
        current_price_usd=investment.current_price_usd,
        current_value_usd=investment.current_value_usd,
        sold_unit_price=investment.sold_unit_price,
        sold_value_usd=investment.sold_value_usd,
    )


class SqlLotRepository:
    """Reads lots from the investments table."""

    def list_lots(self, db: Session, user_id: str) -> list[Lot]:
        """All lots of ``user_id`` in insertion order; empty for unknown users."""
        rows = db.scalars(
            select(Investment)
            .where(Investment.user_id == user_id)
            .order_by(Investment.id)
        ).all()

        lots = [investment_to_lot(row) for row in rows]
        logger.debug(f"Loaded {len(lots)} lots for user {user_id}")
        return lots


# =============================================================================
# PRICE HISTORIES AND QUOTES
# =============================================================================

def parse_price_entries(ticker: str, entries: Iterable[object] | None) -> list[PricePoint]:
    """
    Convert cached ``{"date", "adjClose"}`` entries to PricePoints.

    Malformed entries are dropped with a single summary warning per ticker.
    """
    points: list[PricePoint] = []
    skipped = 0

    for entry in entries or []:
        if not isinstance(entry, dict):
            skipped += 1
            continue
        try:
            on_date = parse_iso_date(entry.get("date"), field="date")
            adj_close = float(entry.get("adjClose"))
        except (InvalidDateError, TypeError, ValueError):
            skipped += 1
            continue
        if not adj_close > 0:
            skipped += 1
            continue
        points.append(PricePoint(date=on_date, adj_close=adj_close))

    if skipped:
        logger.warning(
            f"Skipped {skipped} malformed cached price entr{'y' if skipped == 1 else 'ies'} for {ticker}"
        )

    return points


class SqlPriceSeriesProvider:
    """Reads cached price histories and quotes."""

    def get_price_series(
            self,
            db: Session,
            tickers: Iterable[str],
    ) -> dict[str, PriceSeries]:
        """
        Load the cached history of each ticker.

        Args:
            db: Database session
            tickers: Symbols in any case; duplicates are ignored

        Returns:
            {ticker: PriceSeries} keyed upper-case; never-cached tickers are absent
        """
        wanted = list(dict.fromkeys(t.upper() for t in tickers if t))
        if not wanted:
            return {}

        rows = db.scalars(
            select(HistoricalPriceCache).where(HistoricalPriceCache.ticker.in_(wanted))
        ).all()

        series: dict[str, PriceSeries] = {}
        for row in rows:
            ticker = row.ticker.upper()
            series[ticker] = PriceSeries(
                ticker,
                parse_price_entries(ticker, row.prices),
                updated_at=row.updated_at,
            )

        missing = [t for t in wanted if t not in series]
        if missing:
            logger.debug(f"No cached price history for: {', '.join(missing)}")

        return series

    def get_quote(self, db: Session, ticker: str) -> Quote | None:
        """Latest cached quote, or None if the ticker was never quoted."""
        row = db.scalars(
            select(MarketDataCache).where(MarketDataCache.ticker == ticker.upper())
        ).first()
        if row is None:
            return None
        return Quote(
            ticker=row.ticker.upper(),
            price=row.price,
            currency=row.currency.upper(),
            updated_at=row.updated_at,
        )
