"""
Read-only projections over the leave request collection.

Every function is a pure function of the requests it is given and returns
zero-filled aggregates for an empty collection.
"""
import calendar
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from leavedesk.core.exceptions import ValidationError
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from leavedesk.services.overlap import ranges_overlap
from leavedesk.services.state_machine import ApprovalPolicy

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
CANCELLED = "cancelled"


def outcome(request: LeaveRequest, policy: ApprovalPolicy) -> str:
    """Collapse a workflow status into pending / approved / rejected / cancelled."""
    status = LeaveStatus(request.status)
    if status in (LeaveStatus.PENDING, LeaveStatus.MANAGER_APPROVED):
        return PENDING
    if status == LeaveStatus.HR_APPROVED:
        return PENDING if policy.requires_ceo(request) else APPROVED
    if status in (LeaveStatus.CEO_APPROVED, LeaveStatus.COMPLETED):
        return APPROVED
    if status == LeaveStatus.REJECTED:
        return REJECTED
    return CANCELLED


def parse_month(month: str) -> Tuple[date, date]:
    """'YYYY-MM' -> (first day, last day)."""
    try:
        year_s, month_s = month.split("-")
        year, mon = int(year_s), int(month_s)
        first = date(year, mon, 1)
    except ValueError:
        raise ValidationError(f"Invalid month '{month}', expected YYYY-MM")
    last = date(year, mon, calendar.monthrange(year, mon)[1])
    return first, last


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _final_approval_at(request: LeaveRequest) -> Optional[datetime]:
    return _as_utc(request.ceo_action_date) or _as_utc(request.hr_action_date)


def stats_overview(
    requests: Iterable[LeaveRequest],
    policy: ApprovalPolicy,
    today: Optional[date] = None,
    upcoming_window_days: int = 30,
) -> Dict[str, Any]:
    today = today or date.today()
    horizon = today + timedelta(days=upcoming_window_days)
    counts: Counter = Counter()
    on_leave = set()
    upcoming = 0
    approved_days = 0
    approval_times: List[float] = []

    for request in requests:
        kind = outcome(request, policy)
        counts[kind] += 1
        if kind != APPROVED:
            continue
        approved_days += request.total_days or 0
        if request.start_date <= today <= request.end_date:
            on_leave.add(request.employee_id)
        elif today < request.start_date <= horizon:
            upcoming += 1
        approved_at = _final_approval_at(request)
        created_at = _as_utc(request.created_at)
        if approved_at and created_at:
            approval_times.append((approved_at - created_at).total_seconds() / 86400)

    decided = counts[APPROVED] + counts[REJECTED]
    return {
        "total_requests": sum(counts.values()),
        "pending_requests": counts[PENDING],
        "approved_requests": counts[APPROVED],
        "rejected_requests": counts[REJECTED],
        "cancelled_requests": counts[CANCELLED],
        "employees_on_leave": len(on_leave),
        "upcoming_leaves": upcoming,
        "total_approved_days": approved_days,
        "rejection_rate": round(counts[REJECTED] / decided, 4) if decided else 0.0,
        "avg_approval_time": round(sum(approval_times) / len(approval_times), 2) if approval_times else 0.0,
    }


def department_summary(
    requests: Iterable[LeaveRequest],
    policy: ApprovalPolicy,
    department_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    rows: Dict[str, Dict[str, Any]] = {}
    if department_id is not None:
        rows[department_id] = _empty_department(department_id)

    for request in requests:
        if department_id is not None and request.department_id != department_id:
            continue
        row = rows.setdefault(request.department_id, _empty_department(request.department_id))
        kind = outcome(request, policy)
        if kind == PENDING:
            row["pending_count"] += 1
        elif kind == APPROVED:
            row["approved_count"] += 1
            row["total_days"] += request.total_days or 0
        elif kind == REJECTED:
            row["rejected_count"] += 1

    return [rows[key] for key in sorted(rows)]


def _empty_department(department_id: str) -> Dict[str, Any]:
    return {
        "department": department_id,
        "pending_count": 0,
        "approved_count": 0,
        "rejected_count": 0,
        "total_days": 0,
    }


def monthly_report(requests: Iterable[LeaveRequest], month: str, policy: ApprovalPolicy) -> Dict[str, Any]:
    first, last = parse_month(month)
    by_type = {t.value: 0 for t in LeaveType}
    by_department: Dict[str, int] = defaultdict(int)
    total = approved = rejected = days = 0

    for request in requests:
        if not ranges_overlap(first, last, request.start_date, request.end_date):
            continue
        total += 1
        by_type[request.leave_type] = by_type.get(request.leave_type, 0) + 1
        by_department[request.department_id] += 1
        kind = outcome(request, policy)
        if kind == APPROVED:
            approved += 1
            days += request.total_days or 0
        elif kind == REJECTED:
            rejected += 1

    return {
        "month": f"{first.year:04d}-{first.month:02d}",
        "total_requests": total,
        "approved_requests": approved,
        "rejected_requests": rejected,
        "total_days": days,
        "by_leave_type": by_type,
        "by_department": dict(by_department),
    }


def calendar_month(
    requests: Iterable[LeaveRequest],
    month: str,
    department_id: Optional[str] = None,
) -> Dict[str, Any]:
    first, last = parse_month(month)
    visible = [
        r for r in requests
        if LeaveStatus(r.status) not in (LeaveStatus.REJECTED, LeaveStatus.CANCELLED)
        and (department_id is None or r.department_id == department_id)
        and ranges_overlap(first, last, r.start_date, r.end_date)
    ]
    visible.sort(key=lambda r: (r.start_date, r.id))

    days = []
    day = first
    while day <= last:
        covering = [r for r in visible if r.start_date <= day <= r.end_date]
        days.append({
            "date": day,
            "leave_requests": covering,
            "total_on_leave": len({r.employee_id for r in covering}),
        })
        day += timedelta(days=1)

    summary = {t.value: 0 for t in LeaveType}
    for request in visible:
        summary[request.leave_type] = summary.get(request.leave_type, 0) + 1

    return {"month": f"{first.year:04d}-{first.month:02d}", "days": days, "summary": summary}
