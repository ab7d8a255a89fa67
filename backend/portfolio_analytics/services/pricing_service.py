# backend/portfolio_analytics/services/pricing_service.py
"""
Lot pricing pass.

Refreshes the cached USD snapshot on each of a user's lots from the latest
cached quote and FX rate. The analytics only ever read these fields; this
service is the one place that writes them.

FX convention (same as fx_rate_cache):
    rate = "1 base_currency = X quote_currency"

    EUR lot: usd = eur * rate(EUR -> USD)
             or eur / rate(USD -> EUR) when only that direction is cached

Per lot:
    current_price_usd = quote * fx
    current_value_usd = current_price_usd * units
    cost_basis_usd    = cost_basis * fx
    sold_value_usd    = sold_unit_price * units * fx    (only if never set)

A missing FX rate does not stop the refresh: the quote is taken as USD
(fx = 1), the lot is counted in ``fx_fallbacks`` and a warning is logged.
Tickers without a cached quote are skipped and reported.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_analytics.models import FxRateCache, Investment
from portfolio_analytics.services.constants import BASE_CURRENCY
from portfolio_analytics.services.protocols import PriceSeriesProvider

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT DATA CLASSES
# =============================================================================

@dataclass
class PriceRefreshResult:
    """Outcome of one pricing pass."""

    user_id: str
    lots_updated: int = 0
    tickers_refreshed: list[str] = field(default_factory=list)
    skipped_tickers: list[str] = field(default_factory=list)
    fx_fallbacks: list[str] = field(default_factory=list)  # currencies priced at fx = 1

    @property
    def success(self) -> bool:
        return not self.skipped_tickers and not self.fx_fallbacks


# =============================================================================
# LOT PRICING SERVICE
# =============================================================================

class LotPricingService:
    """
    Writes USD valuations onto investments rows.

    Example:
        service = LotPricingService()
        result = service.refresh_lots(db, "user-1")
        print(f"Updated {result.lots_updated} lots")
    """

    def __init__(self, price_provider: PriceSeriesProvider | None = None) -> None:
        """
        Initialize the pricing service.

        Args:
            price_provider: Quote source. If None, uses the SQLAlchemy adapter.
        """
        if price_provider is None:
            from portfolio_analytics.services.repositories import SqlPriceSeriesProvider
            price_provider = SqlPriceSeriesProvider()
        self._price_provider = price_provider

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    def refresh_lots(
            self,
            db: Session,
            user_id: str,
            now: datetime | None = None,
    ) -> PriceRefreshResult:
        """
        Reprice every lot of ``user_id`` and commit once.

        Args:
            db: Database session
            user_id: Owner of the lots
            now: Timestamp stamped on last_price_update (defaults to UTC now)

        Returns:
            PriceRefreshResult with counts of what was and was not priced
        """
        stamp = now or datetime.now(timezone.utc)
        result = PriceRefreshResult(user_id=user_id)

        investments = db.scalars(
            select(Investment)
            .where(Investment.user_id == user_id)
            .order_by(Investment.id)
        ).all()

        by_ticker: dict[str, list[Investment]] = {}
        for investment in investments:
            by_ticker.setdefault(investment.ticker.upper(), []).append(investment)

        fx_cache: dict[str, float | None] = {}

        for ticker, lots in by_ticker.items():
            quote = self._price_provider.get_quote(db, ticker)
            if quote is None:
                logger.warning(f"No cached quote for {ticker}, skipping {len(lots)} lot(s)")
                result.skipped_tickers.append(ticker)
                continue

            for investment in lots:
                currency = (investment.currency or BASE_CURRENCY).upper()
                if currency not in fx_cache:
                    fx_cache[currency] = self.get_usd_rate(db, currency)

                fx = fx_cache[currency]
                if fx is None:
                    if currency not in result.fx_fallbacks:
                        logger.warning(
                            f"No cached FX rate {currency}->{BASE_CURRENCY}, "
                            f"using raw {ticker} price as USD"
                        )
                        result.fx_fallbacks.append(currency)
                    fx = 1.0

                self._apply_price(investment, quote.price, fx, stamp)
                result.lots_updated += 1

            result.tickers_refreshed.append(ticker)

        db.commit()

        logger.info(
            f"Price refresh for user {user_id}: {result.lots_updated} lots updated, "
            f"{len(result.tickers_refreshed)} tickers refreshed, "
            f"{len(result.skipped_tickers)} skipped"
        )
        return result

    def get_usd_rate(self, db: Session, currency: str) -> float | None:
        """
        Multiplier converting ``currency`` amounts to USD.

        Looks up the direct pair first, then inverts the USD -> currency pair.

        Returns:
            The rate, 1.0 for USD itself, or None when neither pair is cached
        """
        currency = currency.upper()
        if currency == BASE_CURRENCY:
            return 1.0

        direct = self._get_cached_rate(db, currency, BASE_CURRENCY)
        if direct is not None:
            return direct

        inverse = self._get_cached_rate(db, BASE_CURRENCY, currency)
        if inverse is not None:
            return 1.0 / inverse

        return None

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    @staticmethod
    def _get_cached_rate(db: Session, base_currency: str, quote_currency: str) -> float | None:
        row = db.scalars(
            select(FxRateCache).where(
                FxRateCache.base_currency == base_currency,
                FxRateCache.quote_currency == quote_currency,
            )
        ).first()
        if row is None or not row.rate > 0:
            return None
        return row.rate

    @staticmethod
    def _apply_price(investment: Investment, quote_price: float, fx: float, stamp: datetime) -> None:
        price_usd = quote_price * fx
        investment.current_price_usd = price_usd
        investment.current_value_usd = price_usd * investment.units
        investment.cost_basis_usd = investment.cost_basis * fx
        # Disposal proceeds are fixed at the first pricing after the sale
        if investment.sold_unit_price is not None and investment.sold_value_usd is None:
            investment.sold_value_usd = investment.sold_unit_price * investment.units * fx
        investment.last_price_update = stamp
