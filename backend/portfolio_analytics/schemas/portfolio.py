# backend/portfolio_analytics/schemas/portfolio.py
"""
Pydantic schemas for the Portfolio Analytics API.

Design decisions:
- Amounts are USD floats
- Summary and benchmark returns are decimals (0.155 = 15.5%)
- Historical series returns are percentages (15.5 = 15.5%)
- Metrics that cannot be computed are 0, never null
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# BENCHMARK SCHEMAS
# =============================================================================

class BenchmarkMetricsResponse(BaseModel):
    """The portfolio's active lots replayed into one benchmark ETF."""

    model_config = ConfigDict(from_attributes=True)

    ticker: str = Field(..., description="Benchmark symbol")
    total_value: float = Field(
        0.0,
        description="USD value had each lot's cost basis bought the benchmark instead"
    )
    time_weighted_return: float = Field(
        0.0,
        description="Geometrically linked lot returns, annualized for spans of a year or more"
    )
    annualized_volatility: float = Field(0.0, description="Daily return std dev * sqrt(252)")
    sharpe_ratio: float = Field(0.0, description="(annualized return - risk-free rate) / volatility")
    lots_replicated: int = Field(
        0,
        description="Active lots with benchmark prices at acquisition and valuation"
    )


# =============================================================================
# SUMMARY SCHEMAS
# =============================================================================

class PortfolioSummaryResponse(BaseModel):
    """
    Point-in-time portfolio summary.

    Returns are decimals (0.155 = 15.5%).
    """

    model_config = ConfigDict(from_attributes=True)

    valuation_date: date = Field(..., description="Date the portfolio is valued at")
    total_value: float = Field(0.0, description="Mark-to-market value of active lots (USD)")
    total_cost: float = Field(0.0, description="Cost basis of active lots (USD)")
    realized_gain_loss: float = Field(0.0, description="Proceeds minus cost of sold lots (USD)")
    time_weighted_return: float = Field(
        0.0,
        description="Geometrically linked lot returns, annualized for spans of a year or more"
    )
    annualized_volatility: float = Field(0.0, description="Daily return std dev * sqrt(252)")
    sharpe_ratio: float = Field(0.0, description="(annualized return - risk-free rate) / volatility")
    holdings: int = Field(0, description="Number of active lots")
    benchmarks: dict[str, BenchmarkMetricsResponse] = Field(
        default_factory=dict,
        description="Benchmark replay metrics keyed by ticker"
    )


# =============================================================================
# HISTORY SCHEMAS
# =============================================================================

class HistoricalPointResponse(BaseModel):
    """
    One date of the historical series.

    Returns are percentages (15.5 = 15.5%).
    """

    model_config = ConfigDict(from_attributes=True)

    date: date
    total_value: float = Field(..., description="Value of lots held that day at cached closes (USD)")
    total_cost: float = Field(..., description="Cost basis of the lots that had a price that day (USD)")
    gain_loss: float = Field(..., description="total_value - total_cost")
    time_weighted_return: float = Field(..., description="TWR as of this date, percent")
    benchmark_time_weighted_return: float = Field(
        0.0,
        description="Benchmark replay TWR as of this date, percent (0 without a benchmark)"
    )


# =============================================================================
# PRICE REFRESH SCHEMAS
# =============================================================================

class PriceRefreshResponse(BaseModel):
    """Result of repricing a user's lots from cached quotes and FX rates."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    lots_updated: int = Field(..., description="Lots whose USD fields were rewritten")
    tickers_refreshed: list[str] = Field(default_factory=list)
    skipped_tickers: list[str] = Field(
        default_factory=list,
        description="Tickers without a cached quote"
    )
    fx_fallbacks: list[str] = Field(
        default_factory=list,
        description="Currencies without a cached USD rate, priced as if USD"
    )
