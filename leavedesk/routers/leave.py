"""
Leave Request Router

Submission, lookup, edits, balances and overlap checks.
All business logic is delegated to LeaveRequestService.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from leavedesk.core.config import settings
from leavedesk.core.limiter import limiter
from leavedesk.dependencies import get_request_service
from leavedesk.models.leave_request import LeaveStatus, LeaveType
from leavedesk.schemas.leave import (
    AuditEntryResponse,
    BalanceAllotmentUpdate,
    LeaveBalanceResponse,
    LeaveRequestCreate,
    LeaveRequestPage,
    LeaveRequestResponse,
    LeaveRequestUpdate,
    OverlapCheckResponse,
)
from leavedesk.services.leave_service import LeaveRequestService
from leavedesk.services.state_machine import Actor, ActorRole
from leavedesk.services.store import LeaveRequestFilters

router = APIRouter(prefix="/people/leave-requests", tags=["leave"])


@router.post("/", response_model=LeaveRequestResponse, status_code=201)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
def create_leave_request(
    request: Request,
    payload: LeaveRequestCreate,
    service: LeaveRequestService = Depends(get_request_service),
):
    """Submit a leave request. total_days is computed from the dates."""
    return service.create(payload)


@router.get("/", response_model=LeaveRequestPage)
def list_leave_requests(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    employee_id: Optional[str] = None,
    department_id: Optional[str] = None,
    leave_type: Optional[LeaveType] = None,
    status: Optional[LeaveStatus] = None,
    is_emergency: Optional[bool] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    service: LeaveRequestService = Depends(get_request_service),
):
    filters = LeaveRequestFilters(
        employee_id=employee_id,
        department_id=department_id,
        leave_type=leave_type.value if leave_type else None,
        status=status.value if status else None,
        is_emergency=is_emergency,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    page = service.list(filters, skip=skip, limit=limit)
    page["leave_requests"] = [LeaveRequestResponse.model_validate(r) for r in page["leave_requests"]]
    return page


@router.get("/employee/{employee_id}/balance", response_model=LeaveBalanceResponse)
def get_leave_balance(
    employee_id: str,
    year: Optional[int] = None,
    service: LeaveRequestService = Depends(get_request_service),
):
    return service.get_balance(employee_id, year)


@router.put("/employee/{employee_id}/balance", response_model=LeaveBalanceResponse)
def set_leave_allotment(
    employee_id: str,
    payload: BalanceAllotmentUpdate,
    service: LeaveRequestService = Depends(get_request_service),
):
    """Administrative adjustment of one bucket's yearly allotment."""
    return service.set_allotment(employee_id, payload.bucket, payload.total_days, payload.year)


@router.get("/employee/{employee_id}/overlapping", response_model=OverlapCheckResponse)
def check_overlapping_leaves(
    employee_id: str,
    start_date: date,
    end_date: date,
    exclude_request_id: Optional[str] = None,
    service: LeaveRequestService = Depends(get_request_service),
):
    overlaps = service.find_overlaps(employee_id, start_date, end_date, exclude_request_id)
    return {
        "has_overlap": bool(overlaps),
        "overlapping_requests": [LeaveRequestResponse.model_validate(r) for r in overlaps],
    }


@router.get("/{request_id}", response_model=LeaveRequestResponse)
def get_leave_request(request_id: str, service: LeaveRequestService = Depends(get_request_service)):
    return service.get(request_id)


@router.put("/{request_id}", response_model=LeaveRequestResponse)
def update_leave_request(
    request_id: str,
    payload: LeaveRequestUpdate,
    service: LeaveRequestService = Depends(get_request_service),
):
    return service.update(request_id, payload)


@router.delete("/{request_id}")
def delete_leave_request(
    request_id: str,
    actor_id: str,
    role: ActorRole,
    service: LeaveRequestService = Depends(get_request_service),
):
    service.delete(request_id, Actor(actor_id, role))
    return {"success": True, "message": "Leave request deleted"}


@router.get("/{request_id}/history", response_model=List[AuditEntryResponse])
def get_leave_history(request_id: str, service: LeaveRequestService = Depends(get_request_service)):
    return service.history(request_id)
