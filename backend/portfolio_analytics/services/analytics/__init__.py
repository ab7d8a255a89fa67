# backend/portfolio_analytics/services/analytics/__init__.py
"""
Analytics Service Package.

Portfolio valuation and performance analytics over a snapshot of lots and
cached price histories:
- Valuation-date filtering (relevant / active / sold lots)
- Returns (holding-period return, time-weighted return, annualization)
- Risk (daily value reconstruction, volatility, Sharpe ratio)
- Benchmark replication (cost basis replayed into index ETFs)
- Historical series (value, cost and TWR per price date)

Architecture:
    analytics/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Lot, PriceSeries, result dataclasses
    ├── filters.py               # Valuation-date filter
    ├── returns.py               # HPR / TWR
    ├── risk.py                  # Volatility / Sharpe
    ├── benchmark.py             # Benchmark replication
    ├── history.py               # Historical series
    └── service.py               # AnalyticsService (orchestrator)

Usage:
    from portfolio_analytics.services.analytics import AnalyticsService

    service = AnalyticsService(risk_free_rate=0.04, benchmark_tickers=["VOO"])
    summary = service.get_summary(db, user_id="user-1", valuation_date=date(2024, 6, 30))

    print(f"TWR: {summary.time_weighted_return}")
    print(f"Sharpe: {summary.sharpe_ratio}")
    print(f"VOO: {summary.benchmarks['VOO'].total_value}")
"""

from portfolio_analytics.services.analytics.benchmark import (
    BenchmarkReplicator,
    benchmark_valuer,
)
from portfolio_analytics.services.analytics.filters import (
    partition_lots,
    lots_active_on,
)
from portfolio_analytics.services.analytics.history import HistoryAssembler
from portfolio_analytics.services.analytics.returns import (
    holding_period_return,
    link_returns,
    annualize_return,
    calculate_twr,
)
from portfolio_analytics.services.analytics.risk import (
    RiskCalculator,
    calculate_daily_returns,
    calculate_volatility,
    calculate_sharpe_ratio,
    reconstruct_daily_values,
)
# Main service
from portfolio_analytics.services.analytics.service import (
    AnalyticsService,
    build_summary,
    build_benchmark_metrics,
    build_historical_series,
)
# Types
from portfolio_analytics.services.analytics.types import (
    # Input types
    Lot,
    PricePoint,
    PriceSeries,
    LotPartition,
    LotReturn,
    # Result types
    RiskMetrics,
    BenchmarkMetrics,
    PortfolioSummary,
    HistoricalPoint,
)

__all__ = [
    # Main service
    "AnalyticsService",
    "build_summary",
    "build_benchmark_metrics",
    "build_historical_series",

    # Input types
    "Lot",
    "PricePoint",
    "PriceSeries",
    "LotPartition",
    "LotReturn",

    # Result types
    "RiskMetrics",
    "BenchmarkMetrics",
    "PortfolioSummary",
    "HistoricalPoint",

    # Calculators
    "BenchmarkReplicator",
    "HistoryAssembler",
    "RiskCalculator",

    # Individual functions (for testing)
    "partition_lots",
    "lots_active_on",
    "holding_period_return",
    "link_returns",
    "annualize_return",
    "calculate_twr",
    "calculate_daily_returns",
    "calculate_volatility",
    "calculate_sharpe_ratio",
    "reconstruct_daily_values",
    "benchmark_valuer",
]
