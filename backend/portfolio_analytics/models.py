# backend/portfolio_analytics/models.py
import enum
from datetime import date, datetime, timezone

from sqlalchemy import String, Date, DateTime, Float, ForeignKey, Enum, UniqueConstraint, Boolean, JSON, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AccountType(str, enum.Enum):
    TRADITIONAL_401K = "Traditional 401k"
    ROTH_401K = "Roth 401k"
    TRADITIONAL_IRA = "Traditional IRA"
    ROTH_IRA = "Roth IRA"
    INVESTMENT = "Investment"


class Account(Base):
    """A brokerage or retirement account that holds lots."""
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[str] = mapped_column(String)
    # values_callable stores "Roth IRA" rather than the member name
    account_type: Mapped[AccountType] = mapped_column(
        Enum(AccountType, values_callable=lambda e: [m.value for m in e])
    )
    tax_deferred: Mapped[bool] = mapped_column(Boolean, default=False)
    institution: Mapped[str] = mapped_column(String, default="")

    investments: Mapped[list["Investment"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan"
    )


class Investment(Base):
    """
    One purchase lot of an instrument.

    The *_usd columns are a cached snapshot written by the pricing pass; the
    analytics read them but never write them. Native-currency fields
    (unit_price, cost_basis, sold_unit_price) are in ``currency``.
    """
    __tablename__ = "investments"
    __table_args__ = (
        # "All lots of user X" is the only query the analytics issue
        Index('ix_investments_user_ticker', 'user_id', 'ticker'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), index=True)

    ticker: Mapped[str] = mapped_column(String(20), index=True)
    date_acquired: Mapped[date] = mapped_column(Date)
    date_sold: Mapped[date | None] = mapped_column(Date, nullable=True)

    units: Mapped[float] = mapped_column(Float)
    unit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cost_basis: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    # =========================================================================
    # PRICED SNAPSHOT (USD)
    # =========================================================================
    current_price_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_value_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    cost_basis_usd: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Disposal
    sold_unit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    sold_value_usd: Mapped[float | None] = mapped_column(Float, nullable=True)  # set once at disposal

    last_price_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    account: Mapped["Account"] = relationship(back_populates="investments")


class HistoricalPriceCache(Base):
    """
    Daily adjusted-close history for one ticker.

    ``prices`` is a JSON list of ``{"date": "YYYY-MM-DD", "adjClose": float}``
    in the shape the market data fetcher writes it. Order is not guaranteed.
    """
    __tablename__ = "historical_price_cache"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ticker: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    prices: Mapped[list] = mapped_column(JSON, default=list)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class MarketDataCache(Base):
    """Latest quote per ticker, in the instrument's trading currency."""
    __tablename__ = "market_data_cache"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ticker: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    price: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class FxRateCache(Base):
    """
    Latest exchange rate per currency pair.

    Convention: 1 base_currency = rate quote_currency
    Example: base=EUR, quote=USD, rate=1.08
    """
    __tablename__ = "fx_rate_cache"
    __table_args__ = (
        UniqueConstraint('base_currency', 'quote_currency', name='uq_fx_rate_pair'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    base_currency: Mapped[str] = mapped_column(String(3))
    quote_currency: Mapped[str] = mapped_column(String(3))
    rate: Mapped[float] = mapped_column(Float)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )
