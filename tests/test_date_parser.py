"""Tests for date and amount parsing helpers."""

from datetime import date
from decimal import Decimal

import pytest

from cashrecon.utils import get_date_range, parse_amount, parse_date

# A Friday in the last month of Q4.
TODAY = date(2024, 11, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2024-01-15", date(2024, 1, 15)),
        ("January 15, 2024", date(2024, 1, 15)),
        ("today", TODAY),
        ("Yesterday", date(2024, 11, 14)),
        ("tomorrow", date(2024, 11, 16)),
        ("this week", date(2024, 11, 11)),
        ("last week", date(2024, 11, 4)),
        ("next week", date(2024, 11, 18)),
        ("this month", date(2024, 11, 1)),
        ("last month", date(2024, 10, 1)),
        ("next month", date(2024, 12, 1)),
        ("last year", date(2023, 1, 1)),
        ("next year", date(2025, 1, 1)),
    ],
)
def test_parse_date(text, expected):
    assert parse_date(text, today=TODAY) == expected


def test_parse_date_january_last_month():
    assert parse_date("last month", today=date(2024, 1, 20)) == date(2023, 12, 1)


def test_parse_date_invalid():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date at all")


@pytest.mark.parametrize(
    "period,expected",
    [
        ("today", (TODAY, TODAY)),
        ("this-week", (date(2024, 11, 11), TODAY)),
        ("last-week", (date(2024, 11, 4), date(2024, 11, 10))),
        ("this-month", (date(2024, 11, 1), TODAY)),
        ("last-month", (date(2024, 10, 1), date(2024, 10, 31))),
        ("this-quarter", (date(2024, 10, 1), TODAY)),
        ("last-quarter", (date(2024, 7, 1), date(2024, 9, 30))),
        ("this-year", (date(2024, 1, 1), TODAY)),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_get_date_range(period, expected):
    assert get_date_range(period, today=TODAY) == expected


def test_last_quarter_wraps_year():
    assert get_date_range("last-quarter", today=date(2024, 2, 29)) == (
        date(2023, 10, 1),
        date(2023, 12, 31),
    )


def test_last_month_in_march_of_leap_year():
    assert get_date_range("last-month", today=date(2024, 3, 10)) == (
        date(2024, 2, 1),
        date(2024, 2, 29),
    )


def test_unknown_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("fortnight")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("-7.5", Decimal("-7.5")),
        ("(42.00)", Decimal("-42.00")),
        (" €10 ", Decimal("10")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "twelve", "1.2.3", "inf"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)
