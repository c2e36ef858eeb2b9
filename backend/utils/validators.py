"""
Input validation for recipe generation requests
"""
from datetime import date
from typing import Optional, Sequence

from backend.config import get_settings
from backend.utils.exceptions import ValidationFailure
from backend.utils.helpers import parse_date, weekdays_between

settings = get_settings()


def validate_generation_request(
    campus_ids: Optional[Sequence[int]],
    start_date,
    end_date,
    max_weekdays: Optional[int] = None,
) -> tuple[date, date]:
    """Check a generation request and return the parsed (start, end) dates.

    Raises ValidationFailure listing every violated rule. Once the dates are
    missing, unparseable or out of order the weekday checks are skipped, since
    they cannot be evaluated.
    """
    limit = max_weekdays if max_weekdays is not None else settings.MAX_WEEKDAYS_PER_GENERATION
    errors: list[str] = []

    if not campus_ids:
        errors.append("At least one campus must be selected")

    if not start_date or not end_date:
        errors.append("Start date and end date are required")
        raise ValidationFailure(errors)

    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        errors.append("Invalid date format. Please use YYYY-MM-DD format.")
        raise ValidationFailure(errors)

    if start >= end:
        errors.append("End date must be after start date")
        raise ValidationFailure(errors)

    weekdays = weekdays_between(start, end)
    if not weekdays:
        errors.append("Date range must include at least one weekday (Monday-Friday)")
    if len(weekdays) > limit:
        errors.append(f"Date range cannot exceed {limit} weekdays")

    if errors:
        raise ValidationFailure(errors)
    return start, end
