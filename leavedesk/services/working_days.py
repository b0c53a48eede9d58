from datetime import date, timedelta

from leavedesk.core.exceptions import InvalidRangeError


def is_working_day(day: date) -> bool:
    """Monday to Friday. Public holidays are not considered."""
    return day.weekday() < 5


def compute_working_days(start: date, end: date) -> int:
    """
    Count the working days in the inclusive range [start, end].

    Raises:
        InvalidRangeError: if end is before start.
    """
    if end < start:
        raise InvalidRangeError(start, end)

    span = (end - start).days + 1
    full_weeks, extra = divmod(span, 7)
    count = full_weeks * 5
    for offset in range(extra):
        if is_working_day(start + timedelta(days=full_weeks * 7 + offset)):
            count += 1
    return count
