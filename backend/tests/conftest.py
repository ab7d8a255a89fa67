# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- An API client bound to the test session
- Sample data factories (lots, price series, cached rows)
"""

import os
from datetime import date, timedelta
from typing import Iterator

# Settings are read at import time; pin the test environment first
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_analytics.models import (
    Base,
    Account,
    AccountType,
    Investment,
    HistoricalPriceCache,
    MarketDataCache,
    FxRateCache,
)
from portfolio_analytics.services.analytics.types import Lot, PricePoint, PriceSeries


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Iterator[TestClient]:
    """TestClient with the database dependency bound to the test session."""
    from portfolio_analytics.database import get_db
    from portfolio_analytics.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# IN-MEMORY FACTORIES
# =============================================================================

def make_lot(
        ticker: str = "AAPL",
        date_acquired: date = date(2024, 1, 2),
        units: float = 10.0,
        cost_basis: float = 1000.0,
        current_value_usd: float | None = None,
        date_sold: date | None = None,
        sold_value_usd: float | None = None,
        **kwargs,
) -> Lot:
    """Factory for Lot snapshots. cost_basis doubles as the USD cost unless overridden."""
    kwargs.setdefault("cost_basis_usd", cost_basis)
    return Lot(
        ticker=ticker,
        date_acquired=date_acquired,
        units=units,
        cost_basis=cost_basis,
        current_value_usd=current_value_usd,
        date_sold=date_sold,
        sold_value_usd=sold_value_usd,
        **kwargs,
    )


def make_series(ticker: str, prices: dict[date, float]) -> PriceSeries:
    """Factory for a PriceSeries from {date: adj_close}."""
    return PriceSeries(ticker, [PricePoint(d, p) for d, p in prices.items()])


def daily_prices(start: date, values: list[float]) -> dict[date, float]:
    """{date: price} for consecutive calendar days starting at ``start``."""
    return {start + timedelta(days=i): value for i, value in enumerate(values)}


# =============================================================================
# DATABASE FACTORIES
# =============================================================================

def create_account(
        db: Session,
        user_id: str = "user-1",
        name: str = "Brokerage",
        account_type: AccountType = AccountType.INVESTMENT,
) -> Account:
    """Factory function for creating Account rows."""
    account = Account(
        user_id=user_id,
        name=name,
        account_type=account_type,
        tax_deferred=account_type != AccountType.INVESTMENT,
        institution="Test Brokerage",
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def create_investment(
        db: Session,
        account: Account,
        ticker: str = "AAPL",
        date_acquired: date = date(2024, 1, 2),
        units: float = 10.0,
        cost_basis: float = 1000.0,
        currency: str = "USD",
        **kwargs,
) -> Investment:
    """Factory function for creating Investment rows."""
    investment = Investment(
        user_id=account.user_id,
        account_id=account.id,
        ticker=ticker,
        date_acquired=date_acquired,
        units=units,
        unit_price=cost_basis / units if units else None,
        cost_basis=cost_basis,
        currency=currency,
        **kwargs,
    )
    db.add(investment)
    db.commit()
    db.refresh(investment)
    return investment


def create_price_history(
        db: Session,
        ticker: str,
        prices: dict[date, float] | list,
) -> HistoricalPriceCache:
    """
    Factory function for historical_price_cache rows.

    A dict is stored in the fetcher's ``{"date", "adjClose"}`` shape; a list
    is stored as given, for malformed-entry tests.
    """
    if isinstance(prices, dict):
        entries = [{"date": d.isoformat(), "adjClose": p} for d, p in prices.items()]
        start_date, end_date = min(prices), max(prices)
    else:
        entries = prices
        start_date = end_date = None

    row = HistoricalPriceCache(
        ticker=ticker,
        prices=entries,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def create_quote(db: Session, ticker: str, price: float, currency: str = "USD") -> MarketDataCache:
    """Factory function for market_data_cache rows."""
    row = MarketDataCache(ticker=ticker, price=price, currency=currency)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def create_fx_rate(db: Session, base: str, quote: str, rate: float) -> FxRateCache:
    """Factory function for fx_rate_cache rows."""
    row = FxRateCache(base_currency=base, quote_currency=quote, rate=rate)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def sample_account(db: Session) -> Account:
    """Provide an account owned by user-1."""
    return create_account(db)
