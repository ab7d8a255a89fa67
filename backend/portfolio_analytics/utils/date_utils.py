# backend/portfolio_analytics/utils/date_utils.py
"""
Date utility functions for Portfolio Analytics.

Lots and cached price series carry calendar dates as ISO ``YYYY-MM-DD``
strings. This module converts them to ``datetime.date`` at the boundary so the
analytics never compare strings or depend on a local timezone: a ``date`` has
no time component, so day arithmetic is the same as treating every date as
UTC midnight.

Usage:
    from portfolio_analytics.utils.date_utils import parse_iso_date, days_between

    start = parse_iso_date("2023-01-01")
    days = days_between(start, parse_iso_date("2024-01-01"))  # 365
"""

from datetime import date, datetime

from portfolio_analytics.services.exceptions import InvalidDateError

ISO_DATE_FORMAT = "%Y-%m-%d"


def parse_iso_date(value: str | date, field: str | None = None) -> date:
    """
    Parse an ISO ``YYYY-MM-DD`` string into a date.

    Timestamps such as ``2024-01-31T00:00:00.000Z`` are truncated to their
    date part, which is how the price cache normalizes provider output.

    Args:
        value: ISO date string, or a date (returned unchanged)
        field: Field name reported in the error

    Returns:
        The parsed calendar date

    Raises:
        InvalidDateError: If the value is not a valid ISO date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value, field=field)

    text = value.strip().split("T", 1)[0]
    try:
        return datetime.strptime(text, ISO_DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateError(value, field=field) from e


def parse_optional_date(value: str | date | None, field: str | None = None) -> date | None:
    """Parse an optional ISO date; empty strings and None map to None."""
    if value is None or value == "":
        return None
    return parse_iso_date(value, field=field)


def days_between(start: date, end: date) -> int:
    """
    Whole calendar days from start to end, never less than 1.

    A same-day or reversed span counts as one day so annualization exponents
    stay finite.

    Example:
        >>> days_between(date(2023, 1, 1), date(2024, 1, 1))
        365
        >>> days_between(date(2024, 1, 1), date(2024, 1, 1))
        1
    """
    return max(1, (end - start).days)
