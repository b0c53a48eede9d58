import pytest
from datetime import date, timedelta

from leavedesk.core.exceptions import InvalidRangeError
from leavedesk.services.working_days import compute_working_days, is_working_day


def test_full_working_week():
    # 2024-03-04 is a Monday
    assert compute_working_days(date(2024, 3, 4), date(2024, 3, 8)) == 5

def test_single_day_range():
    assert compute_working_days(date(2024, 3, 6), date(2024, 3, 6)) == 1
    assert compute_working_days(date(2024, 3, 9), date(2024, 3, 9)) == 0   # Saturday
    assert compute_working_days(date(2024, 3, 10), date(2024, 3, 10)) == 0  # Sunday

def test_weekend_only_range_counts_zero():
    assert compute_working_days(date(2024, 3, 9), date(2024, 3, 10)) == 0

def test_range_spanning_weekends():
    # Friday to Monday of the next-but-one week
    assert compute_working_days(date(2024, 3, 1), date(2024, 3, 18)) == 12

def test_end_before_start_is_rejected():
    with pytest.raises(InvalidRangeError) as exc:
        compute_working_days(date(2024, 3, 8), date(2024, 3, 4))
    assert exc.value.status_code == 400
    assert exc.value.error_code == "INVALID_RANGE"

def test_matches_day_by_day_count():
    start = date(2024, 1, 1)
    for length in range(0, 40):
        end = start + timedelta(days=length)
        expected = sum(
            1 for i in range(length + 1)
            if (start + timedelta(days=i)).weekday() < 5
        )
        assert compute_working_days(start, end) == expected

def test_recomputation_is_stable():
    start, end = date(2024, 2, 26), date(2024, 3, 12)
    assert compute_working_days(start, end) == compute_working_days(start, end)

def test_is_working_day():
    assert is_working_day(date(2024, 3, 4))
    assert not is_working_day(date(2024, 3, 9))
