"""
Date helpers for weekly meal planning (school week is Monday-Friday)
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or pass a date through). Returns None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def is_weekday(d: date) -> bool:
    return d.weekday() < 5


def weekdays_between(start: date, end: date) -> list[date]:
    """All Monday-Friday dates in [start, end], inclusive"""
    days = []
    current = start
    while current <= end:
        if is_weekday(current):
            days.append(current)
        current += timedelta(days=1)
    return days


def week_window(d: date) -> tuple[date, date]:
    """Monday and Friday of the week containing d"""
    monday = d - timedelta(days=d.weekday())
    return monday, monday + timedelta(days=4)
