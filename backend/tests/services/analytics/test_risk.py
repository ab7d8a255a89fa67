# backend/tests/services/analytics/test_risk.py
"""
Unit tests for risk calculations.

Test Coverage:
- Price date grid: collect_price_dates, restrict_dates
- reconstruct_daily_values: lots held per day, positive totals only
- calculate_daily_returns, calculate_volatility (population std dev)
- calculate_sharpe_ratio including the zero-volatility rule
- RiskCalculator.calculate_all / calculate_for_lots
"""

import math
from datetime import date

import pytest

from portfolio_analytics.services.analytics.risk import (
    RiskCalculator,
    annualize_daily_return,
    calculate_daily_returns,
    calculate_sharpe_ratio,
    calculate_volatility,
    collect_price_dates,
    holding_valuer,
    reconstruct_daily_values,
    restrict_dates,
)
from tests.conftest import daily_prices, make_lot, make_series

D0 = date(2024, 1, 1)
D = [date(2024, 1, day) for day in range(1, 6)]


# =============================================================================
# DATE GRID TESTS
# =============================================================================

class TestDateGrid:
    """Tests for collect_price_dates and restrict_dates."""

    def test_union_is_sorted_and_unique(self):
        a = make_series("A", {D[2]: 1.0, D[0]: 1.0})
        b = make_series("B", {D[1]: 1.0, D[2]: 1.0})

        assert collect_price_dates([a, b]) == [D[0], D[1], D[2]]

    def test_restrict_inclusive(self):
        assert restrict_dates(D, D[1], D[3]) == [D[1], D[2], D[3]]

    def test_restrict_open_end(self):
        assert restrict_dates(D, D[3]) == [D[3], D[4]]

    def test_no_start_means_no_dates(self):
        assert restrict_dates(D, None) == []


# =============================================================================
# DAILY VALUE TESTS
# =============================================================================

class TestReconstructDailyValues:
    """Tests for reconstruct_daily_values."""

    def test_lots_enter_and_leave(self):
        """
        AAPL: 10 units from D0. MSFT: 5 units held D2 to D4 (sold on D4).
        MSFT has no D4 close, the last known one carries forward.
        """
        series = {
            "AAPL": make_series("AAPL", daily_prices(D0, [10.0, 11.0, 12.0, 13.0, 14.0])),
            "MSFT": make_series("MSFT", {D[2]: 20.0, D[3]: 22.0}),
        }
        lots = [
            make_lot("AAPL", D[0], units=10.0),
            make_lot("MSFT", D[2], units=5.0, date_sold=D[4]),
        ]

        values = reconstruct_daily_values(D, lots, holding_valuer(series))

        assert values == pytest.approx([100.0, 110.0, 220.0, 240.0, 140.0])

    def test_unpriced_days_are_dropped(self):
        series = {"AAPL": make_series("AAPL", {D[2]: 10.0, D[3]: 11.0})}
        lots = [make_lot("AAPL", D[0], units=1.0)]

        values = reconstruct_daily_values(D[:4], lots, holding_valuer(series))

        assert values == pytest.approx([10.0, 11.0])

    def test_unknown_ticker_contributes_nothing(self):
        lots = [make_lot("ZZZ", D[0])]
        assert reconstruct_daily_values(D, lots, holding_valuer({})) == []


# =============================================================================
# RETURNS AND VOLATILITY TESTS
# =============================================================================

class TestVolatility:
    """Tests for daily returns and volatility."""

    def test_daily_returns(self):
        assert calculate_daily_returns([100.0, 110.0, 99.0]) == pytest.approx([0.1, -0.1])

    def test_single_value_has_no_returns(self):
        assert calculate_daily_returns([100.0]) == []

    def test_population_std_dev(self):
        """Returns +10% and -10%: mean 0, variance 0.01 (divide by N)."""
        assert calculate_volatility([0.1, -0.1], annualize=False) == pytest.approx(0.1)

    def test_annualized(self):
        assert calculate_volatility([0.1, -0.1]) == pytest.approx(0.1 * math.sqrt(252))

    def test_no_returns(self):
        assert calculate_volatility([]) == 0.0

    def test_single_return_has_zero_volatility(self):
        assert calculate_volatility([0.05], annualize=False) == 0.0

    def test_divides_by_n_not_n_minus_one(self):
        returns = [0.02, 0.0, -0.01]
        mean = sum(returns) / 3
        expected = math.sqrt(sum((r - mean) ** 2 for r in returns) / 3)

        vol = calculate_volatility(returns, annualize=False)

        assert vol == pytest.approx(expected)
        assert vol != pytest.approx(math.sqrt(sum((r - mean) ** 2 for r in returns) / 2))

    def test_annualize_daily_return(self):
        assert annualize_daily_return(0.0) == 0.0
        assert annualize_daily_return(0.001) == pytest.approx(1.001 ** 252 - 1)


# =============================================================================
# SHARPE TESTS
# =============================================================================

class TestSharpe:
    """Tests for calculate_sharpe_ratio."""

    def test_basic(self):
        assert calculate_sharpe_ratio(0.14, 0.2, 0.04) == pytest.approx(0.5)

    def test_zero_volatility(self):
        assert calculate_sharpe_ratio(0.5, 0.0, 0.04) == 0.0


# =============================================================================
# RISK CALCULATOR TESTS
# =============================================================================

class TestRiskCalculator:
    """Tests for RiskCalculator."""

    def test_insufficient_values(self):
        result = RiskCalculator.calculate_all([100.0])

        assert result.annualized_volatility == 0.0
        assert result.sharpe_ratio == 0.0
        assert result.observations == 1

    def test_flat_series_has_zero_sharpe(self):
        result = RiskCalculator.calculate_all([100.0, 100.0, 100.0])

        assert result.annualized_volatility == 0.0
        assert result.sharpe_ratio == 0.0

    def test_all_metrics(self):
        result = RiskCalculator.calculate_all([100.0, 110.0, 99.0], risk_free_rate=0.04)
        vol = 0.1 * math.sqrt(252)

        assert result.average_daily_return == pytest.approx(0.0)
        assert result.daily_volatility == pytest.approx(0.1)
        assert result.annualized_volatility == pytest.approx(vol)
        assert result.annualized_return == pytest.approx(0.0)
        assert result.sharpe_ratio == pytest.approx(-0.04 / vol)
        assert result.observations == 3

    def test_for_lots(self):
        series = {"AAPL": make_series("AAPL", daily_prices(D0, [10.0, 11.0, 9.9]))}
        lots = [make_lot("AAPL", D0, units=10.0)]

        result = RiskCalculator.calculate_for_lots(D[:3], lots, holding_valuer(series), 0.04)

        assert result.annualized_volatility == pytest.approx(0.1 * math.sqrt(252))
