"""
Generation request validation and date helpers
"""
from datetime import date

import pytest

from backend.utils.exceptions import ValidationFailure
from backend.utils.helpers import parse_date, week_window, weekdays_between
from backend.utils.validators import validate_generation_request


def _errors(*args, **kwargs):
    with pytest.raises(ValidationFailure) as exc:
        validate_generation_request(*args, **kwargs)
    return exc.value.errors


# ===================== VALIDATION =====================


def test_valid_request_returns_dates():
    start, end = validate_generation_request([1, 2], "2024-03-04", "2024-03-08", max_weekdays=10)
    assert (start, end) == (date(2024, 3, 4), date(2024, 3, 8))


def test_campus_required():
    assert _errors([], "2024-03-04", "2024-03-08", max_weekdays=10) == [
        "At least one campus must be selected"
    ]
    assert _errors(None, "2024-03-04", "2024-03-08", max_weekdays=10) == [
        "At least one campus must be selected"
    ]


def test_dates_required():
    assert _errors([1], None, "2024-03-08") == ["Start date and end date are required"]
    assert _errors([], "", None) == [
        "At least one campus must be selected",
        "Start date and end date are required",
    ]


def test_invalid_date_format():
    assert _errors([1], "2024/03/04", "2024-03-08") == [
        "Invalid date format. Please use YYYY-MM-DD format."
    ]
    assert _errors([1], "2024-02-30", "2024-03-08") == [
        "Invalid date format. Please use YYYY-MM-DD format."
    ]


@pytest.mark.parametrize("start,end", [("2024-03-08", "2024-03-04"), ("2024-03-04", "2024-03-04")])
def test_end_must_follow_start(start, end):
    assert _errors([1], start, end) == ["End date must be after start date"]


def test_weekend_only_range():
    assert _errors([1], "2024-03-09", "2024-03-10", max_weekdays=10) == [
        "Date range must include at least one weekday (Monday-Friday)"
    ]


def test_weekday_limit():
    # three full weeks: 15 weekdays
    assert _errors([1], "2024-03-04", "2024-03-22", max_weekdays=10) == [
        "Date range cannot exceed 10 weekdays"
    ]
    validate_generation_request([1], "2024-03-04", "2024-03-15", max_weekdays=10)


def test_all_independent_rules_are_reported_together():
    assert _errors([], "2024-03-04", "2024-03-22", max_weekdays=10) == [
        "At least one campus must be selected",
        "Date range cannot exceed 10 weekdays",
    ]


# ===================== DATE HELPERS =====================


def test_parse_date():
    assert parse_date("2024-03-04") == date(2024, 3, 4)
    assert parse_date("2024-03-04T08:00:00") == date(2024, 3, 4)
    assert parse_date(date(2024, 3, 4)) == date(2024, 3, 4)
    assert parse_date("yesterday") is None
    assert parse_date(None) is None


def test_weekdays_between_skips_weekends():
    days = weekdays_between(date(2024, 3, 8), date(2024, 3, 12))
    assert days == [date(2024, 3, 8), date(2024, 3, 11), date(2024, 3, 12)]


def test_week_window():
    assert week_window(date(2024, 3, 6)) == (date(2024, 3, 4), date(2024, 3, 8))
    assert week_window(date(2024, 3, 10)) == (date(2024, 3, 4), date(2024, 3, 8))
