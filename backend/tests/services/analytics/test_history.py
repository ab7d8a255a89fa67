# backend/tests/services/analytics/test_history.py
"""
Unit tests for the historical series.

Test Coverage:
- HistoryAssembler.assemble: date grid, per-date revaluation
- Cost counted only for priced lots, sold lots dropped after sale
- Percent-scaled TWR and benchmark TWR
"""

from datetime import date

import pytest

from portfolio_analytics.services.analytics.history import HistoryAssembler
from tests.conftest import make_lot, make_series

START = date(2023, 1, 1)
MID = date(2023, 7, 1)


class TestHistoryAssembler:
    """Tests for HistoryAssembler.assemble."""

    def test_single_lot_series(self):
        """
        One unit bought at 100 on 2023-01-01, closes 100 then 150.

        The mid-year point is 181 days in, so the TWR is not annualized:
        ((150 - 100) / 100) * 100 = 50.
        """
        series = {"X": make_series("X", {START: 100.0, MID: 150.0})}
        lot = make_lot("X", START, units=1.0, cost_basis=100.0, unit_price=100.0)

        points = HistoryAssembler().assemble([lot], series)

        assert [p.date for p in points] == [START, MID]

        first, last = points
        assert first.total_value == pytest.approx(100.0)
        assert first.gain_loss == pytest.approx(0.0)
        assert first.time_weighted_return == pytest.approx(0.0)

        assert last.total_value == pytest.approx(150.0)
        assert last.total_cost == pytest.approx(100.0)
        assert last.gain_loss == pytest.approx(50.0)
        assert last.time_weighted_return == pytest.approx(50.0)
        assert last.benchmark_time_weighted_return == 0.0

    def test_multi_year_point_is_annualized(self):
        """
        Closes 100 then 121 over 731 days: cumulative 21%, but the point is
        past a year so it reports (1.21)^(365/731) - 1, about 9.99%.
        """
        end = date(2025, 1, 1)
        series = {"X": make_series("X", {START: 100.0, end: 121.0})}
        lot = make_lot("X", START, units=1.0, cost_basis=100.0)

        last = HistoryAssembler().assemble([lot], series)[-1]

        assert last.date == end
        assert last.total_value == pytest.approx(121.0)
        assert last.time_weighted_return == pytest.approx(9.9857, abs=1e-3)
        assert last.time_weighted_return != pytest.approx(21.0)

    def test_no_lots(self):
        series = {"X": make_series("X", {START: 100.0})}
        assert HistoryAssembler().assemble([], series) == []

    def test_no_prices(self):
        assert HistoryAssembler().assemble([make_lot("X", START)], {}) == []

    def test_dates_before_first_acquisition_are_skipped(self):
        series = {"X": make_series("X", {date(2022, 12, 1): 90.0, START: 100.0})}
        lot = make_lot("X", START, units=1.0, cost_basis=100.0)

        points = HistoryAssembler().assemble([lot], series)

        assert [p.date for p in points] == [START]

    def test_cost_only_for_priced_lots(self):
        """Y has no close until MID, so its cost is left out before then."""
        series = {
            "X": make_series("X", {START: 100.0, MID: 110.0}),
            "Y": make_series("Y", {MID: 50.0}),
        }
        lots = [
            make_lot("X", START, units=1.0, cost_basis=100.0),
            make_lot("Y", START, units=2.0, cost_basis=80.0),
        ]

        first, last = HistoryAssembler().assemble(lots, series)

        assert first.total_cost == pytest.approx(100.0)
        assert last.total_cost == pytest.approx(180.0)
        assert last.total_value == pytest.approx(210.0)

    def test_sold_lot_leaves_series(self):
        series = {"X": make_series("X", {START: 100.0, MID: 150.0})}
        lot = make_lot("X", START, units=1.0, cost_basis=100.0, date_sold=MID)

        first, last = HistoryAssembler().assemble([lot], series)

        assert first.total_value == pytest.approx(100.0)
        assert last.total_value == 0.0
        assert last.total_cost == 0.0
        assert last.time_weighted_return == 0.0

    def test_benchmark_twr_in_percent(self):
        series = {"X": make_series("X", {START: 100.0, MID: 150.0})}
        benchmark = make_series("VOO", {START: 50.0, MID: 55.0})
        lot = make_lot("X", START, units=1.0, cost_basis=100.0)

        points = HistoryAssembler().assemble([lot], series, benchmark)

        assert points[-1].benchmark_time_weighted_return == pytest.approx(10.0)

    def test_points_are_ascending(self):
        series = {
            "X": make_series("X", {MID: 1.0, START: 1.0}),
            "Y": make_series("Y", {date(2023, 3, 1): 1.0}),
        }
        lots = [make_lot("X", START), make_lot("Y", START)]

        dates = [p.date for p in HistoryAssembler().assemble(lots, series)]

        assert dates == sorted(dates)
        assert len(dates) == 3
