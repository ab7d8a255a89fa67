# backend/tests/services/test_repositories.py
"""
Tests for the SQLAlchemy adapters.

Test Coverage:
- SqlLotRepository.list_lots: row -> Lot mapping, ordering, user isolation
- parse_price_entries: malformed cache entries
- SqlPriceSeriesProvider: price series and quotes
"""

import logging
from datetime import date

import pytest

from portfolio_analytics.services.repositories import (
    SqlLotRepository,
    SqlPriceSeriesProvider,
    parse_price_entries,
)
from tests.conftest import (
    create_account,
    create_investment,
    create_price_history,
    create_quote,
)


# =============================================================================
# LOT REPOSITORY TESTS
# =============================================================================

class TestSqlLotRepository:
    """Tests for SqlLotRepository."""

    def test_maps_rows_to_lots(self, db, sample_account):
        row = create_investment(
            db, sample_account, "aapl", date(2024, 1, 2), units=4.0, cost_basis=400.0,
            currency="USD", cost_basis_usd=400.0, current_value_usd=480.0,
        )

        lots = SqlLotRepository().list_lots(db, "user-1")

        assert len(lots) == 1
        lot = lots[0]
        assert lot.ticker == "AAPL"
        assert lot.date_acquired == date(2024, 1, 2)
        assert lot.units == 4.0
        assert lot.unit_price == 100.0
        assert lot.current_value_usd == 480.0
        assert lot.lot_id == row.id
        assert lot.account_id == sample_account.id
        assert lot.date_sold is None

    def test_insertion_order(self, db, sample_account):
        for ticker in ("MSFT", "AAPL", "VOO"):
            create_investment(db, sample_account, ticker)

        lots = SqlLotRepository().list_lots(db, "user-1")

        assert [lot.ticker for lot in lots] == ["MSFT", "AAPL", "VOO"]

    def test_only_requested_user(self, db, sample_account):
        other = create_account(db, user_id="user-2")
        create_investment(db, sample_account, "AAPL")
        create_investment(db, other, "MSFT")

        lots = SqlLotRepository().list_lots(db, "user-2")

        assert [lot.ticker for lot in lots] == ["MSFT"]

    def test_unknown_user(self, db):
        assert SqlLotRepository().list_lots(db, "nobody") == []


# =============================================================================
# PRICE ENTRY PARSING TESTS
# =============================================================================

class TestParsePriceEntries:
    """Tests for parse_price_entries."""

    def test_valid_entries(self):
        points = parse_price_entries("VOO", [
            {"date": "2024-01-02", "adjClose": 400.5},
            {"date": "2024-01-03T00:00:00.000Z", "adjClose": "401"},
        ])

        assert [(p.date, p.adj_close) for p in points] == [
            (date(2024, 1, 2), 400.5),
            (date(2024, 1, 3), 401.0),
        ]

    def test_malformed_entries_skipped_with_warning(self, caplog):
        entries = [
            {"date": "2024-01-02", "adjClose": 400.0},
            {"date": "not-a-date", "adjClose": 401.0},
            {"date": "2024-01-04"},
            {"date": "2024-01-05", "adjClose": 0},
            {"date": "2024-01-06", "adjClose": float("nan")},
            "garbage",
        ]

        with caplog.at_level(logging.WARNING):
            points = parse_price_entries("VOO", entries)

        assert [p.date for p in points] == [date(2024, 1, 2)]
        assert "Skipped 5 malformed" in caplog.text

    def test_none(self):
        assert parse_price_entries("VOO", None) == []


# =============================================================================
# PRICE PROVIDER TESTS
# =============================================================================

class TestSqlPriceSeriesProvider:
    """Tests for SqlPriceSeriesProvider."""

    def test_series_keyed_upper_case(self, db):
        create_price_history(db, "VOO", {date(2024, 1, 3): 401.0, date(2024, 1, 2): 400.0})

        series = SqlPriceSeriesProvider().get_price_series(db, ["voo", "VOO", "QQQ"])

        assert list(series) == ["VOO"]
        assert series["VOO"].dates == (date(2024, 1, 2), date(2024, 1, 3))
        assert series["VOO"].updated_at is not None

    def test_no_tickers(self, db):
        assert SqlPriceSeriesProvider().get_price_series(db, []) == {}

    def test_duplicate_dates_last_wins(self, db):
        create_price_history(db, "DIA", [
            {"date": "2024-01-02", "adjClose": 300.0},
            {"date": "2024-01-02", "adjClose": 301.0},
        ])

        series = SqlPriceSeriesProvider().get_price_series(db, ["DIA"])

        assert len(series["DIA"]) == 1
        assert series["DIA"].price_on_or_before(date(2024, 1, 2)).adj_close == 301.0

    def test_quote(self, db):
        create_quote(db, "SAP", 120.0, currency="eur")

        quote = SqlPriceSeriesProvider().get_quote(db, "sap")

        assert quote.ticker == "SAP"
        assert quote.price == pytest.approx(120.0)
        assert quote.currency == "EUR"

    def test_missing_quote(self, db):
        assert SqlPriceSeriesProvider().get_quote(db, "ZZZ") is None
