"""
Leave Workflow Router

Role-scoped approval actions on a single leave request. Every endpoint
delegates to LeaveWorkflowService, which runs the action as one transaction.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from leavedesk.dependencies import get_workflow_service
from leavedesk.schemas.leave import (
    CancelRequest,
    CeoApprovalRequest,
    CompleteRequest,
    HrApprovalRequest,
    LeaveRequestResponse,
    LegacyHrApprovalRequest,
    ManagerApprovalRequest,
    RejectRequest,
    WorkflowActionRequest,
)
from leavedesk.services.legacy_adapter import legacy_hr_approve
from leavedesk.services.state_machine import ActorRole
from leavedesk.services.workflow import LeaveWorkflowService

router = APIRouter(prefix="/people/leave-requests", tags=["leave-workflow"])


@router.get("/workflow/pending", response_model=List[LeaveRequestResponse])
def get_pending_for_role(
    role: ActorRole,
    department_id: Optional[str] = None,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    """Requests waiting for an action from the given role."""
    return workflow.pending_for_role(role, department_id)


@router.post("/{request_id}/manager-approve", response_model=LeaveRequestResponse)
def manager_approve(
    request_id: str,
    payload: ManagerApprovalRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.manager_approve(request_id, payload)


@router.post("/{request_id}/hr-approve", response_model=LeaveRequestResponse)
def hr_approve(
    request_id: str,
    payload: HrApprovalRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    """HR approval. Balance values are computed by the ledger, not taken from the body."""
    return workflow.hr_approve(request_id, payload)


@router.post("/{request_id}/hr-approve/legacy", response_model=LeaveRequestResponse, deprecated=True)
def hr_approve_legacy(
    request_id: str,
    payload: LegacyHrApprovalRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    """Positional argument list of old clients, normalized before approval."""
    return legacy_hr_approve(
        workflow, request_id, payload.hr_id, *payload.args,
        role=payload.role, expected_version=payload.expected_version,
    )


@router.post("/{request_id}/ceo-approve", response_model=LeaveRequestResponse)
def ceo_approve(
    request_id: str,
    payload: CeoApprovalRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.ceo_approve(request_id, payload)


@router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
def reject(
    request_id: str,
    payload: RejectRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.reject(request_id, payload)


@router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
def cancel(
    request_id: str,
    payload: CancelRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.cancel(request_id, payload)


@router.post("/{request_id}/complete", response_model=LeaveRequestResponse)
def complete(
    request_id: str,
    payload: CompleteRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.complete(request_id, payload)


@router.post("/{request_id}/workflow/action", response_model=LeaveRequestResponse)
def workflow_action(
    request_id: str,
    payload: WorkflowActionRequest,
    workflow: LeaveWorkflowService = Depends(get_workflow_service),
):
    return workflow.workflow_action(request_id, payload)
