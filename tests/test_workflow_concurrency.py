"""
Two sessions acting on the same request: the one holding the older version
must get a ConcurrentModificationError and leave the ledger untouched.
"""
import pytest

from leavedesk.core.exceptions import ConcurrentModificationError
from leavedesk.models.leave_balance import LeaveBalance
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus
from leavedesk.schemas.leave import CancelRequest, HrApprovalRequest, RejectRequest
from leavedesk.services.leave_service import LeaveRequestService
from leavedesk.services.state_machine import Actor, ActorRole
from leavedesk.services.workflow import LeaveWorkflowService


def _annual_remaining(db_session):
    db_session.expire_all()
    return db_session.query(LeaveBalance).filter_by(
        employee_id="emp-1", leave_type="annual", year=2024
    ).one().remaining_days

def _seed_debited(db_session, make_request):
    db_session.add(make_request(
        status=LeaveStatus.HR_APPROVED.value,
        balance_before=18.0,
        balance_after=13.0,
        balance_deducted=True,
    ))
    db_session.add(LeaveBalance(
        employee_id="emp-1", leave_type="annual", year=2024,
        total_days=18.0, used_days=5.0, remaining_days=13.0,
    ))
    db_session.commit()

def _hold(db_session):
    """Load the request into the session so it keeps version 1 in memory."""
    held = db_session.get(LeaveRequest, "req-1")
    assert held.version == 1
    return held


def test_stale_hr_approval_is_a_conflict(db_session, second_session, make_request):
    db_session.add(make_request(status=LeaveStatus.MANAGER_APPROVED.value))
    db_session.commit()
    _hold(db_session)

    LeaveWorkflowService(second_session).hr_approve("req-1", HrApprovalRequest(hr_id="hr-2"))

    with pytest.raises(ConcurrentModificationError):
        LeaveWorkflowService(db_session).hr_approve("req-1", HrApprovalRequest(hr_id="hr-1"))

    stored = db_session.get(LeaveRequest, "req-1")
    assert stored.approved_by_hr == "hr-2"
    assert stored.version == 2
    # Default allotment of 18, debited exactly once
    assert _annual_remaining(db_session) == 13

def test_stale_cancel_after_debit_is_a_conflict(db_session, second_session, make_request):
    _seed_debited(db_session, make_request)
    _hold(db_session)

    LeaveWorkflowService(second_session).reject(
        "req-1", RejectRequest(rejected_by="mgr-1", role=ActorRole.MANAGER)
    )

    with pytest.raises(ConcurrentModificationError):
        LeaveWorkflowService(db_session).cancel("req-1", CancelRequest(employee_id="emp-1"))

    assert db_session.get(LeaveRequest, "req-1").status == LeaveStatus.REJECTED.value
    assert _annual_remaining(db_session) == 18

def test_stale_delete_after_debit_is_a_conflict(db_session, second_session, make_request):
    _seed_debited(db_session, make_request)
    _hold(db_session)

    LeaveWorkflowService(second_session).cancel("req-1", CancelRequest(employee_id="emp-1"))

    with pytest.raises(ConcurrentModificationError):
        LeaveRequestService(db_session).delete("req-1", Actor("hr-1", ActorRole.HR))

    assert db_session.get(LeaveRequest, "req-1").status == LeaveStatus.CANCELLED.value
    assert _annual_remaining(db_session) == 18
