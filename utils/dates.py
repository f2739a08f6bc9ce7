"""
Date helpers shared by the network and health calculations.

Every helper returns a new value; nothing mutates its arguments.
"""
from datetime import date, datetime, timedelta


def to_date(value):
    """
    Converts a date, datetime or ISO string to a date.

    Args:
        value: date, datetime, ISO-8601 string or None

    Returns:
        datetime.date or None
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"Invalid date value: {value!r}")
    raise TypeError(f"Unsupported date type: {type(value).__name__}")


def add_days(value, days):
    """Returns value shifted by a number of days."""
    return value + timedelta(days=days)


def days_between(start, end):
    """Number of whole days from start to end (negative when end is earlier)."""
    return (end - start).days


def today():
    return date.today()
