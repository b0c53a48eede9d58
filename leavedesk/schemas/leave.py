import datetime as dt
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

from leavedesk.models.leave_request import LeaveCategory, LeaveType
from leavedesk.services.state_machine import ActorRole, LeaveAction


# --- Requests ---

class LeaveRequestCreate(BaseModel):
    employee_id: str
    department_id: str
    user_name: Optional[str] = None
    department_name: Optional[str] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    # Accepted for compatibility with older clients; always recomputed server side
    total_days: Optional[float] = None
    reason: str
    proof: Optional[str] = None
    applied_on: Optional[date] = None
    backup_person: Optional[str] = None
    contact_during_leave: Optional[str] = None
    task_project: Optional[str] = None
    is_emergency: bool = False
    emergency_contact: Optional[str] = None
    hr_notes: Optional[str] = None
    leave_category: Optional[LeaveCategory] = None


class LeaveRequestUpdate(BaseModel):
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_days: Optional[float] = None
    reason: Optional[str] = None
    proof: Optional[str] = None
    backup_person: Optional[str] = None
    contact_during_leave: Optional[str] = None
    task_project: Optional[str] = None
    is_emergency: Optional[bool] = None
    emergency_contact: Optional[str] = None
    hr_notes: Optional[str] = None
    leave_category: Optional[LeaveCategory] = None
    expected_version: Optional[int] = None


class ManagerApprovalRequest(BaseModel):
    manager_id: str
    remarks: Optional[str] = None
    # Accepted for compatibility; no balance is finalized at the manager stage
    balance_before: Optional[float] = None
    balance_after: Optional[float] = None
    role: ActorRole = ActorRole.MANAGER
    expected_version: Optional[int] = None


class HrApprovalRequest(BaseModel):
    """Canonical HR approval payload."""
    hr_id: str
    remarks: Optional[str] = None
    balance_before: Optional[float] = None
    balance_after: Optional[float] = None
    leave_category: Optional[LeaveCategory] = None
    hr_notes: Optional[str] = None
    role: ActorRole = ActorRole.HR
    expected_version: Optional[int] = None


class LegacyHrApprovalRequest(BaseModel):
    """Positional call shape of old clients: hrApprove(id, hrId, ...args)."""
    hr_id: str
    args: List[Union[StrictInt, StrictFloat, StrictStr, None]] = Field(default_factory=list, max_length=4)
    role: ActorRole = ActorRole.HR
    expected_version: Optional[int] = None


class CeoApprovalRequest(BaseModel):
    ceo_id: str
    remarks: Optional[str] = None
    role: ActorRole = ActorRole.CEO
    expected_version: Optional[int] = None


class RejectRequest(BaseModel):
    rejected_by: str
    role: ActorRole
    remarks: Optional[str] = None
    expected_version: Optional[int] = None


class CancelRequest(BaseModel):
    employee_id: str
    remarks: Optional[str] = None
    role: ActorRole = ActorRole.EMPLOYEE
    expected_version: Optional[int] = None


class CompleteRequest(BaseModel):
    hr_id: str
    remarks: Optional[str] = None
    role: ActorRole = ActorRole.HR
    expected_version: Optional[int] = None


class WorkflowActionRequest(BaseModel):
    action: LeaveAction
    role: ActorRole
    user_id: str
    remarks: Optional[str] = None
    balance_before: Optional[float] = None
    balance_after: Optional[float] = None
    expected_version: Optional[int] = None


class BalanceAllotmentUpdate(BaseModel):
    bucket: str
    total_days: float
    year: Optional[int] = None


# --- Responses ---

class LeaveRequestResponse(BaseModel):
    id: str
    employee_id: str
    department_id: str
    user_name: Optional[str] = None
    department_name: Optional[str] = None
    leave_type: str
    leave_category: str
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: str
    proof: Optional[str] = None
    applied_on: Optional[date] = None
    approved_by_manager: Optional[str] = None
    approved_by_hr: Optional[str] = None
    approved_by_ceo: Optional[str] = None
    manager_action_date: Optional[datetime] = None
    hr_action_date: Optional[datetime] = None
    ceo_action_date: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_by_role: Optional[str] = None
    cancelled_by: Optional[str] = None
    completed_by: Optional[str] = None
    balance_before: Optional[float] = None
    balance_after: Optional[float] = None
    balance_deducted: bool = False
    remarks: Optional[str] = None
    hr_notes: Optional[str] = None
    backup_person: Optional[str] = None
    contact_during_leave: Optional[str] = None
    task_project: Optional[str] = None
    is_emergency: bool = False
    emergency_contact: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int

    model_config = ConfigDict(from_attributes=True)


class LeaveRequestPage(BaseModel):
    leave_requests: List[LeaveRequestResponse]
    total: int
    page: int
    pages: int


class LeaveBalanceResponse(BaseModel):
    employee_id: str
    year: int
    annual: float
    sick: float
    compassionate: float
    paternity: float
    maternity: float
    study: float
    personal: float


class OverlapCheckResponse(BaseModel):
    has_overlap: bool
    overlapping_requests: List[LeaveRequestResponse]


class AuditEntryResponse(BaseModel):
    id: int
    action: str
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    details: Optional[dict] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveStats(BaseModel):
    total_requests: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int
    cancelled_requests: int
    employees_on_leave: int
    upcoming_leaves: int
    total_approved_days: int
    rejection_rate: float
    avg_approval_time: float


class DepartmentSummary(BaseModel):
    department: str
    pending_count: int
    approved_count: int
    rejected_count: int
    total_days: int


class MonthlyLeaveReport(BaseModel):
    month: str
    total_requests: int
    approved_requests: int
    rejected_requests: int
    total_days: int
    by_leave_type: Dict[str, int]
    by_department: Dict[str, int]


class CalendarDay(BaseModel):
    date: dt.date
    leave_requests: List[LeaveRequestResponse]
    total_on_leave: int


class CalendarMonth(BaseModel):
    month: str
    days: List[CalendarDay]
    summary: Dict[str, int]


# Resolve forward references for Pydantic V2
LeaveRequestResponse.model_rebuild()
CalendarDay.model_rebuild()
