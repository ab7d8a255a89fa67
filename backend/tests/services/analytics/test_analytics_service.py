# backend/tests/services/analytics/test_analytics_service.py
"""
Tests for the analytics orchestration.

build_summary and friends are exercised on in-memory snapshots.
AnalyticsService is exercised twice: with in-memory collaborators, to pin
down what it asks for, and against SQLite through the SQL adapters.
"""

import math
from datetime import date

import pytest

from portfolio_analytics.services.analytics import (
    AnalyticsService,
    Lot,
    PriceSeries,
    build_benchmark_metrics,
    build_historical_series,
    build_summary,
)
from tests.conftest import (
    create_investment,
    create_price_history,
    make_lot,
    make_series,
)

VALUATION = date(2024, 1, 1)


def _population_vol(values: list[float]) -> float:
    returns = [(b - a) / a for a, b in zip(values, values[1:])]
    mean = sum(returns) / len(returns)
    return math.sqrt(sum((r - mean) ** 2 for r in returns) / len(returns)) * math.sqrt(252)


@pytest.fixture
def lots() -> list[Lot]:
    return [
        make_lot("AAPL", date(2023, 1, 1), units=10.0, cost_basis=1000.0, current_value_usd=1200.0),
        make_lot("MSFT", date(2023, 6, 1), units=5.0, cost_basis=500.0,
                 date_sold=date(2023, 12, 1), sold_value_usd=600.0),
        make_lot("NVDA", date(2025, 1, 1), units=1.0, cost_basis=300.0, current_value_usd=900.0),
    ]


@pytest.fixture
def price_series() -> dict[str, PriceSeries]:
    return {
        "AAPL": make_series("AAPL", {
            date(2023, 1, 1): 100.0,
            date(2023, 7, 1): 110.0,
            date(2024, 1, 1): 120.0,
        }),
        "VOO": make_series("VOO", {date(2023, 1, 1): 50.0, date(2024, 1, 1): 60.0}),
    }


# =============================================================================
# SUMMARY TESTS
# =============================================================================

class TestBuildSummary:
    """Tests for build_summary."""

    def test_aggregates(self, lots, price_series):
        summary = build_summary(lots, price_series, VALUATION, benchmark_tickers=["VOO"])

        assert summary.valuation_date == VALUATION
        assert summary.total_value == pytest.approx(1200.0)
        assert summary.total_cost == pytest.approx(1000.0)
        assert summary.realized_gain_loss == pytest.approx(100.0)
        assert summary.holdings == 1

    def test_twr_links_active_and_sold_lots(self, lots, price_series):
        """AAPL +20%, MSFT +20%, exactly 365 days from 2023-01-01: 1.2 * 1.2 - 1."""
        summary = build_summary(lots, price_series, VALUATION, benchmark_tickers=[])

        assert summary.time_weighted_return == pytest.approx(0.44)

    def test_volatility_from_held_prices(self, lots, price_series):
        summary = build_summary(lots, price_series, VALUATION, benchmark_tickers=[], risk_free_rate=0.04)

        assert summary.annualized_volatility == pytest.approx(_population_vol([1000.0, 1100.0, 1200.0]))
        assert summary.sharpe_ratio != 0.0

    def test_benchmark_entry(self, lots, price_series):
        summary = build_summary(lots, price_series, VALUATION, benchmark_tickers=["VOO", "QQQ"])

        assert list(summary.benchmarks) == ["VOO", "QQQ"]

        voo = summary.benchmarks["VOO"]
        assert voo.total_value == pytest.approx(1200.0)
        assert voo.time_weighted_return == pytest.approx(0.2)
        assert voo.lots_replicated == 1
        # Sampled on AAPL's dates: 1000, 1000, 1200
        assert voo.annualized_volatility == pytest.approx(_population_vol([1000.0, 1000.0, 1200.0]))

        assert summary.benchmarks["QQQ"].total_value == 0.0

    def test_nothing_acquired_yet(self, lots, price_series):
        summary = build_summary(lots, price_series, date(2022, 1, 1), benchmark_tickers=["VOO"])

        assert summary.total_value == 0.0
        assert summary.time_weighted_return == 0.0
        assert summary.holdings == 0
        assert summary.benchmarks["VOO"].total_value == 0.0

    def test_no_prices_still_values_from_snapshot(self, lots):
        summary = build_summary(lots, {}, VALUATION, benchmark_tickers=["VOO"])

        assert summary.total_value == pytest.approx(1200.0)
        assert summary.annualized_volatility == 0.0
        assert summary.sharpe_ratio == 0.0

    def test_benchmark_metrics_match_summary_entry(self, lots, price_series):
        summary = build_summary(lots, price_series, VALUATION, benchmark_tickers=["VOO"])
        standalone = build_benchmark_metrics(lots, price_series, "VOO", VALUATION)

        assert standalone == summary.benchmarks["VOO"]


class TestBuildHistoricalSeries:
    """Tests for build_historical_series."""

    def test_benchmark_is_not_a_holding(self, lots, price_series):
        points = build_historical_series(lots, price_series, benchmark_ticker="VOO")

        # Dates come from AAPL only, VOO is just the comparison
        assert [p.date for p in points] == [date(2023, 1, 1), date(2023, 7, 1), date(2024, 1, 1)]
        assert points[-1].benchmark_time_weighted_return == pytest.approx(20.0)


# =============================================================================
# SERVICE WITH IN-MEMORY COLLABORATORS
# =============================================================================

class InMemoryLotRepository:
    def __init__(self, lots_by_user: dict[str, list[Lot]]):
        self._lots = lots_by_user

    def list_lots(self, db, user_id: str) -> list[Lot]:
        return list(self._lots.get(user_id, []))


class InMemoryPriceProvider:
    def __init__(self, series: dict[str, PriceSeries]):
        self._series = series
        self.requests: list[list[str]] = []

    def get_price_series(self, db, tickers) -> dict[str, PriceSeries]:
        wanted = [t.upper() for t in tickers]
        self.requests.append(wanted)
        return {t: self._series[t] for t in wanted if t in self._series}

    def get_quote(self, db, ticker):
        return None


class TestAnalyticsService:
    """Tests for AnalyticsService with in-memory collaborators."""

    @pytest.fixture
    def provider(self, price_series) -> InMemoryPriceProvider:
        return InMemoryPriceProvider(price_series)

    @pytest.fixture
    def service(self, lots, provider) -> AnalyticsService:
        return AnalyticsService(
            lot_repository=InMemoryLotRepository({"user-1": lots}),
            price_provider=provider,
            risk_free_rate=0.04,
            benchmark_tickers=["voo", "qqq"],
        )

    def test_summary_requests_relevant_and_benchmark_tickers(self, service, provider):
        summary = service.get_summary(None, "user-1", VALUATION)

        assert provider.requests == [["AAPL", "MSFT", "VOO", "QQQ"]]
        assert summary.total_value == pytest.approx(1200.0)
        assert list(summary.benchmarks) == ["VOO", "QQQ"]

    def test_unknown_user_gets_empty_summary(self, service, provider):
        summary = service.get_summary(None, "nobody", VALUATION)

        assert summary.total_value == 0.0
        assert summary.holdings == 0
        assert set(summary.benchmarks) == {"VOO", "QQQ"}
        assert provider.requests == []

    def test_history_for_unknown_user(self, service):
        assert service.get_historical_series(None, "nobody") == []

    def test_history_normalizes_benchmark(self, service, provider):
        points = service.get_historical_series(None, "user-1", benchmark_ticker="voo")

        assert provider.requests[-1][-1] == "VOO"
        assert points[-1].benchmark_time_weighted_return == pytest.approx(20.0)

    def test_benchmark_metrics(self, service):
        metrics = service.get_benchmark_metrics(None, "user-1", "voo", VALUATION)

        assert metrics.ticker == "VOO"
        assert metrics.total_value == pytest.approx(1200.0)

    def test_benchmark_metrics_for_unknown_user(self, service):
        metrics = service.get_benchmark_metrics(None, "nobody", "VOO", VALUATION)

        assert metrics.ticker == "VOO"
        assert metrics.lots_replicated == 0


# =============================================================================
# SERVICE AGAINST THE DATABASE
# =============================================================================

class TestAnalyticsServiceDatabase:
    """AnalyticsService with the default SQL adapters."""

    def test_summary_from_rows(self, db, sample_account):
        create_investment(
            db, sample_account, "AAPL", date(2023, 1, 1), units=10.0, cost_basis=1000.0,
            cost_basis_usd=1000.0, current_value_usd=1200.0,
        )
        create_investment(
            db, sample_account, "MSFT", date(2023, 6, 1), units=5.0, cost_basis=500.0,
            cost_basis_usd=500.0, date_sold=date(2023, 12, 1), sold_value_usd=600.0,
        )
        create_price_history(db, "AAPL", {date(2023, 1, 1): 100.0, date(2024, 1, 1): 120.0})
        create_price_history(db, "VOO", {date(2023, 1, 1): 50.0, date(2024, 1, 1): 60.0})

        summary = AnalyticsService(benchmark_tickers=["VOO"]).get_summary(db, "user-1", VALUATION)

        assert summary.total_value == pytest.approx(1200.0)
        assert summary.realized_gain_loss == pytest.approx(100.0)
        assert summary.time_weighted_return == pytest.approx(0.44)
        assert summary.benchmarks["VOO"].total_value == pytest.approx(1200.0)

    def test_other_users_lots_are_invisible(self, db, sample_account):
        create_investment(db, sample_account, "AAPL", date(2023, 1, 1), current_value_usd=1200.0)

        summary = AnalyticsService(benchmark_tickers=[]).get_summary(db, "user-2", VALUATION)

        assert summary.total_value == 0.0
