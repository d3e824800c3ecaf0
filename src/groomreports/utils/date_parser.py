"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from dateutil import parser as date_parser


def parse_date(value: Union[str, date, datetime], relative: bool = True) -> date:
    """Parse a date value into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024", ISO timestamps)
    and the relative words "today", "yesterday" and "tomorrow".

    Args:
        value: Date string, date or datetime
        relative: Accept the relative words

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Could not parse date '{value}'")

    date_str = value.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        if not relative:
            raise ValueError(f"Relative date '{value}' is not allowed here")
        return relative_dates[date_str]

    try:
        return date_parser.isoparse(value.strip()).date()
    except ValueError:
        pass

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def parse_datetime(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """Parse a timestamp, returning None for empty input.

    Raises:
        ValueError: If the value is present but cannot be parsed
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return date_parser.isoparse(value.strip())
    except ValueError:
        pass
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse timestamp '{value}': {e}")


def parse_time(value: Union[str, time, None]) -> Optional[time]:
    """Parse an "HH:MM" (or "HH:MM:SS", "9:30 AM") time of day."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return date_parser.parse(value.strip()).time()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse time '{value}': {e}")


def week_start(day: date) -> date:
    """Return the Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` bucket key for ``day``."""
    return day.strftime("%Y-%m")
