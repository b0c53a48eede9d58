import pytest
from datetime import date, datetime, timezone

from leavedesk.core.exceptions import ValidationError
from leavedesk.models.leave_request import LeaveStatus
from leavedesk.services import reports
from leavedesk.services.state_machine import ApprovalPolicy

POLICY = ApprovalPolicy(ceo_threshold_days=10)


def test_empty_collection_yields_zero_filled_aggregates():
    stats = reports.stats_overview([], POLICY, today=date(2024, 3, 1))
    assert stats["total_requests"] == 0
    assert stats["rejection_rate"] == 0.0
    assert stats["avg_approval_time"] == 0.0

    assert reports.department_summary([], POLICY) == []
    assert reports.department_summary([], POLICY, "dept-eng") == [{
        "department": "dept-eng", "pending_count": 0, "approved_count": 0,
        "rejected_count": 0, "total_days": 0,
    }]

    monthly = reports.monthly_report([], "2024-03", POLICY)
    assert monthly["total_requests"] == 0
    assert set(monthly["by_leave_type"].values()) == {0}
    assert monthly["by_department"] == {}

    cal = reports.calendar_month([], "2024-02")
    assert len(cal["days"]) == 29
    assert all(day["total_on_leave"] == 0 for day in cal["days"])

def test_outcome_depends_on_ceo_policy(make_request):
    short = make_request(status=LeaveStatus.HR_APPROVED.value, total_days=5)
    long = make_request(status=LeaveStatus.HR_APPROVED.value, total_days=15)
    assert reports.outcome(short, POLICY) == reports.APPROVED
    assert reports.outcome(long, POLICY) == reports.PENDING

def test_stats_overview(make_request):
    created = datetime(2024, 2, 1, tzinfo=timezone.utc)
    requests = [
        make_request(id="a", status=LeaveStatus.HR_APPROVED.value, created_at=created,
                     hr_action_date=datetime(2024, 2, 3, tzinfo=timezone.utc)),
        make_request(id="b", employee_id="emp-2", status=LeaveStatus.COMPLETED.value,
                     start_date=date(2024, 3, 18), end_date=date(2024, 3, 19), total_days=2),
        make_request(id="c", status=LeaveStatus.REJECTED.value),
        make_request(id="d", status=LeaveStatus.PENDING.value),
        make_request(id="e", status=LeaveStatus.CANCELLED.value),
    ]
    stats = reports.stats_overview(requests, POLICY, today=date(2024, 3, 6))
    assert stats["total_requests"] == 5
    assert stats["approved_requests"] == 2
    assert stats["pending_requests"] == 1
    assert stats["rejected_requests"] == 1
    assert stats["cancelled_requests"] == 1
    assert stats["employees_on_leave"] == 1
    assert stats["upcoming_leaves"] == 1
    assert stats["total_approved_days"] == 7
    assert stats["rejection_rate"] == pytest.approx(1 / 3, abs=1e-4)
    assert stats["avg_approval_time"] == 2.0

def test_department_summary(make_request):
    requests = [
        make_request(id="a", status=LeaveStatus.CEO_APPROVED.value, total_days=12),
        make_request(id="b", status=LeaveStatus.MANAGER_APPROVED.value),
        make_request(id="c", department_id="dept-ops", status=LeaveStatus.REJECTED.value),
    ]
    rows = reports.department_summary(requests, POLICY)
    assert rows == [
        {"department": "dept-eng", "pending_count": 1, "approved_count": 1, "rejected_count": 0, "total_days": 12},
        {"department": "dept-ops", "pending_count": 0, "approved_count": 0, "rejected_count": 1, "total_days": 0},
    ]

def test_monthly_report_counts_requests_touching_the_month(make_request):
    requests = [
        make_request(id="a", status=LeaveStatus.COMPLETED.value),
        make_request(id="b", leave_type="Sick", status=LeaveStatus.REJECTED.value,
                     start_date=date(2024, 2, 28), end_date=date(2024, 3, 1), total_days=3),
        make_request(id="c", start_date=date(2024, 4, 1), end_date=date(2024, 4, 2)),
    ]
    report = reports.monthly_report(requests, "2024-03", POLICY)
    assert report["month"] == "2024-03"
    assert report["total_requests"] == 2
    assert report["approved_requests"] == 1
    assert report["rejected_requests"] == 1
    assert report["total_days"] == 5
    assert report["by_leave_type"]["Annual"] == 1
    assert report["by_leave_type"]["Sick"] == 1
    assert report["by_department"] == {"dept-eng": 2}

def test_calendar_hides_rejected_and_cancelled(make_request):
    requests = [
        make_request(id="a"),
        make_request(id="b", employee_id="emp-2", status=LeaveStatus.REJECTED.value),
        make_request(id="c", employee_id="emp-3", department_id="dept-ops",
                     start_date=date(2024, 3, 8), end_date=date(2024, 3, 8), total_days=1),
    ]
    cal = reports.calendar_month(requests, "2024-03")
    by_date = {day["date"]: day for day in cal["days"]}
    assert by_date[date(2024, 3, 8)]["total_on_leave"] == 2
    assert by_date[date(2024, 3, 4)]["total_on_leave"] == 1
    assert by_date[date(2024, 3, 11)]["total_on_leave"] == 0
    assert cal["summary"]["Annual"] == 2

    ops_only = reports.calendar_month(requests, "2024-03", department_id="dept-ops")
    assert sum(day["total_on_leave"] for day in ops_only["days"]) == 1

@pytest.mark.parametrize("month", ["2024-13", "March", "2024/03", ""])
def test_invalid_month(month):
    with pytest.raises(ValidationError):
        reports.parse_month(month)
