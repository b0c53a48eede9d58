"""
Leave Reports Router

Aggregations over the stored leave requests. Read-only.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from leavedesk.core.config import settings
from leavedesk.dependencies import get_policy, get_store
from leavedesk.schemas.leave import (
    CalendarMonth,
    DepartmentSummary,
    LeaveRequestResponse,
    LeaveStats,
    MonthlyLeaveReport,
)
from leavedesk.services import reports
from leavedesk.services.state_machine import ApprovalPolicy
from leavedesk.services.store import SqlLeaveRequestStore

router = APIRouter(prefix="/people/leave-requests", tags=["leave-reports"])


@router.get("/stats/overview", response_model=LeaveStats)
def stats_overview(
    today: Optional[date] = None,
    store: SqlLeaveRequestStore = Depends(get_store),
    policy: ApprovalPolicy = Depends(get_policy),
):
    return reports.stats_overview(
        store.all(), policy, today=today,
        upcoming_window_days=settings.leave.upcoming_window_days,
    )


@router.get("/department/summary", response_model=List[DepartmentSummary])
def department_summary(
    department_id: Optional[str] = None,
    store: SqlLeaveRequestStore = Depends(get_store),
    policy: ApprovalPolicy = Depends(get_policy),
):
    return reports.department_summary(store.all(), policy, department_id)


@router.get("/monthly/{month}", response_model=MonthlyLeaveReport)
def monthly_report(
    month: str,
    store: SqlLeaveRequestStore = Depends(get_store),
    policy: ApprovalPolicy = Depends(get_policy),
):
    """Requests touching `month` (YYYY-MM), by outcome, type and department."""
    return reports.monthly_report(store.all(), month, policy)


@router.get("/calendar/{month}", response_model=CalendarMonth)
def leave_calendar(
    month: str,
    department_id: Optional[str] = None,
    store: SqlLeaveRequestStore = Depends(get_store),
):
    result = reports.calendar_month(store.all(), month, department_id)
    for day in result["days"]:
        day["leave_requests"] = [LeaveRequestResponse.model_validate(r) for r in day["leave_requests"]]
    return result
