# backend/portfolio_analytics/services/protocols.py
"""
Protocol interfaces for the analytics collaborators.

The analytics never query the database directly; they read a snapshot of
lots and price histories through these interfaces. typing.Protocol keeps the
coupling structural: the SQLAlchemy adapters in repositories.py satisfy them
without inheriting, and tests can pass simple in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from portfolio_analytics.services.analytics.types import Lot, PriceSeries
    from portfolio_analytics.services.repositories import Quote


class LotRepository(Protocol):
    """Source of a user's lots."""

    def list_lots(self, db: Session, user_id: str) -> list[Lot]:
        ...


class PriceSeriesProvider(Protocol):
    """Source of cached adjusted-close histories and live quotes."""

    def get_price_series(
        self,
        db: Session,
        tickers: Iterable[str],
    ) -> dict[str, PriceSeries]:
        """Series keyed by upper-case ticker; tickers never cached are absent."""
        ...

    def get_quote(self, db: Session, ticker: str) -> Quote | None:
        ...
