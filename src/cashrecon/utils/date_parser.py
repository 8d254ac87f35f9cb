"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = (
    "today",
    "this-week",
    "this-month",
    "this-quarter",
    "this-year",
    "last-week",
    "last-month",
    "last-quarter",
    "last-year",
)


def _quarter_start(day: date) -> date:
    return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", "tomorrow", and "last/this/next" followed by
    week, month or year, which resolve to the first day of that period.

    Args:
        date_str: Date string
        today: Reference date for relative dates (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    relative_days = {"today": 0, "yesterday": -1, "tomorrow": 1}
    if text in relative_days:
        return today + timedelta(days=relative_days[text])

    prefix, _, period = text.partition(" ")
    offsets = {"last": -1, "this": 0, "next": 1}
    if prefix in offsets and period in ("week", "month", "year"):
        step = offsets[prefix]
        if period == "week":
            return today - timedelta(days=today.weekday()) + timedelta(weeks=step)
        if period == "month":
            return today.replace(day=1) + relativedelta(months=step)
        return today.replace(month=1, day=1) + relativedelta(years=step)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Periods starting with "this" end today; "last" periods cover the whole
    previous week, month, quarter or year.

    Args:
        period: One of PERIODS
        today: Reference date (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "today":
        return (today, today)
    if period == "this-week":
        return (today - timedelta(days=today.weekday()), today)
    if period == "this-month":
        return (today.replace(day=1), today)
    if period == "this-quarter":
        return (_quarter_start(today), today)
    if period == "this-year":
        return (today.replace(month=1, day=1), today)
    if period == "last-week":
        start_date = today - timedelta(days=today.weekday() + 7)
        return (start_date, start_date + timedelta(days=6))
    if period == "last-month":
        end_date = today.replace(day=1) - timedelta(days=1)
        return (end_date.replace(day=1), end_date)
    if period == "last-quarter":
        end_date = _quarter_start(today) - timedelta(days=1)
        return (_quarter_start(end_date), end_date)
    if period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        return (start_date, start_date.replace(month=12, day=31))

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
