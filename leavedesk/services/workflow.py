"""
Leave Workflow Service

Runs the approval state machine against persisted requests. Each action is
one transaction: load, check the optimistic version, transition, apply the
balance effect, audit, commit. Any failure rolls the whole action back and
propagates to the caller.

Architecture:
- Router -> LeaveWorkflowService -> LeaveStateMachine (pure) / LeaveBalanceLedger / store
"""
from datetime import date
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from leavedesk.core.config import settings
from leavedesk.core.exceptions import ConcurrentModificationError, NotFoundError
from leavedesk.models.leave_request import ACTIVE_STATUSES, LeaveRequest, LeaveStatus
from leavedesk.schemas.leave import (
    CancelRequest,
    CeoApprovalRequest,
    CompleteRequest,
    HrApprovalRequest,
    ManagerApprovalRequest,
    RejectRequest,
    WorkflowActionRequest,
)
from leavedesk.services.audit import AuditService
from leavedesk.services.base import BaseService
from leavedesk.services.ledger import LeaveBalanceLedger
from leavedesk.services.state_machine import (
    Actor,
    ActorRole,
    ApprovalPolicy,
    BalanceEffect,
    LeaveAction,
    LeaveStateMachine,
)
from leavedesk.services.store import LeaveRequestStore, SqlLeaveRequestStore

# Approval queue of each role: the actions that move a request forward
ROLE_QUEUES: Dict[ActorRole, List[LeaveAction]] = {
    ActorRole.EMPLOYEE: [],
    ActorRole.MANAGER: [LeaveAction.MANAGER_APPROVE],
    ActorRole.HR: [LeaveAction.HR_APPROVE, LeaveAction.COMPLETE],
    ActorRole.CEO: [LeaveAction.CEO_APPROVE],
    ActorRole.ADMIN: [
        LeaveAction.MANAGER_APPROVE, LeaveAction.HR_APPROVE,
        LeaveAction.CEO_APPROVE, LeaveAction.COMPLETE,
    ],
}


def default_policy() -> ApprovalPolicy:
    return ApprovalPolicy(
        ceo_threshold_days=settings.leave.ceo_threshold_days,
        enforce_completion_date=settings.leave.enforce_completion_date,
    )


class LeaveWorkflowService(BaseService):

    def __init__(
        self,
        db: Session,
        store: Optional[LeaveRequestStore] = None,
        ledger: Optional[LeaveBalanceLedger] = None,
        machine: Optional[LeaveStateMachine] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        super().__init__(db)
        self.store = store or SqlLeaveRequestStore(db)
        self.ledger = ledger or LeaveBalanceLedger(db)
        self.machine = machine or LeaveStateMachine(default_policy())
        self.audit = AuditService(db)
        self._today = today or date.today

    def _load(self, request_id: str, expected_version: Optional[int]) -> LeaveRequest:
        request = self.store.get(request_id)
        if request is None:
            raise NotFoundError(f"Leave request {request_id} not found")
        if expected_version is not None and request.version != expected_version:
            raise ConcurrentModificationError(
                f"Leave request {request_id} is at version {request.version}, not {expected_version}. "
                "Re-fetch and retry."
            )
        return request

    def _run(
        self,
        request_id: str,
        action: LeaveAction,
        actor: Actor,
        remarks: Optional[str],
        expected_version: Optional[int],
        prepare: Optional[Callable[[LeaveRequest], None]] = None,
        details: Optional[dict] = None,
    ) -> LeaveRequest:
        try:
            request = self._load(request_id, expected_version)
            # Validate before any field of the payload touches the request
            self.machine.check(request, action, actor, self._today())
            if prepare is not None:
                prepare(request)
            result = self.machine.apply(request, action, actor, remarks=remarks, today=self._today())

            if result.balance_effect == BalanceEffect.FINALIZE:
                self.ledger.finalize(request)
            elif result.balance_effect == BalanceEffect.RESTORE:
                self.ledger.restore(request)

            self.store.update(request)
            self.audit.log_action(
                action=action.value,
                leave_request_id=request.id,
                actor_id=actor.id,
                actor_role=actor.role.value,
                from_status=result.from_status.value,
                to_status=result.to_status.value,
                details={
                    "remarks": remarks,
                    "balance_effect": result.balance_effect.value,
                    "balance_before": request.balance_before,
                    "balance_after": request.balance_after,
                    **(details or {}),
                },
            )
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            self.log_warning(
                f"Leave action {action.value} on {request_id} lost a concurrent update",
                actor_id=actor.id, actor_role=actor.role.value
            )
            raise ConcurrentModificationError() from e
        except Exception:
            self.db.rollback()
            self.log_warning(
                f"Leave action {action.value} on {request_id} failed",
                actor_id=actor.id, actor_role=actor.role.value
            )
            raise

        self.db.refresh(request)
        self.log_info(
            f"Leave request {request.id}: {result.from_status.value} -> {result.to_status.value} "
            f"by {actor.role.value} {actor.id}"
        )
        return request

    # --- Named actions ---

    def manager_approve(self, request_id: str, payload: ManagerApprovalRequest) -> LeaveRequest:
        return self._run(
            request_id, LeaveAction.MANAGER_APPROVE, Actor(payload.manager_id, payload.role),
            payload.remarks, payload.expected_version,
        )

    def hr_approve(self, request_id: str, payload: HrApprovalRequest) -> LeaveRequest:
        def prepare(request: LeaveRequest) -> None:
            if payload.leave_category is not None and request.balance_after is None:
                request.leave_category = payload.leave_category.value
            if payload.hr_notes is not None:
                request.hr_notes = payload.hr_notes

        request = self._run(
            request_id, LeaveAction.HR_APPROVE, Actor(payload.hr_id, payload.role),
            payload.remarks, payload.expected_version, prepare=prepare,
            details={
                "client_balance_before": payload.balance_before,
                "client_balance_after": payload.balance_after,
            },
        )
        self._report_balance_mismatch(request, payload.balance_before, payload.balance_after)
        return request

    def ceo_approve(self, request_id: str, payload: CeoApprovalRequest) -> LeaveRequest:
        return self._run(
            request_id, LeaveAction.CEO_APPROVE, Actor(payload.ceo_id, payload.role),
            payload.remarks, payload.expected_version,
        )

    def reject(self, request_id: str, payload: RejectRequest) -> LeaveRequest:
        return self._run(
            request_id, LeaveAction.REJECT, Actor(payload.rejected_by, payload.role),
            payload.remarks, payload.expected_version,
        )

    def cancel(self, request_id: str, payload: CancelRequest) -> LeaveRequest:
        return self._run(
            request_id, LeaveAction.CANCEL, Actor(payload.employee_id, payload.role),
            payload.remarks, payload.expected_version,
        )

    def complete(self, request_id: str, payload: CompleteRequest) -> LeaveRequest:
        return self._run(
            request_id, LeaveAction.COMPLETE, Actor(payload.hr_id, payload.role),
            payload.remarks, payload.expected_version,
        )

    def workflow_action(self, request_id: str, payload: WorkflowActionRequest) -> LeaveRequest:
        """Generic entry point: any action, any role, one payload shape."""
        common = {"remarks": payload.remarks, "role": payload.role, "expected_version": payload.expected_version}
        action = payload.action
        if action == LeaveAction.MANAGER_APPROVE:
            return self.manager_approve(request_id, ManagerApprovalRequest(manager_id=payload.user_id, **common))
        if action == LeaveAction.HR_APPROVE:
            return self.hr_approve(request_id, HrApprovalRequest(
                hr_id=payload.user_id,
                balance_before=payload.balance_before,
                balance_after=payload.balance_after,
                **common,
            ))
        if action == LeaveAction.CEO_APPROVE:
            return self.ceo_approve(request_id, CeoApprovalRequest(ceo_id=payload.user_id, **common))
        if action == LeaveAction.REJECT:
            return self.reject(request_id, RejectRequest(rejected_by=payload.user_id, **common))
        if action == LeaveAction.CANCEL:
            return self.cancel(request_id, CancelRequest(employee_id=payload.user_id, **common))
        return self.complete(request_id, CompleteRequest(hr_id=payload.user_id, **common))

    # --- Queries ---

    def pending_for_role(self, role: ActorRole, department_id: Optional[str] = None) -> List[LeaveRequest]:
        """Requests waiting for an action from `role`, oldest start date first."""
        queue = ROLE_QUEUES[role]
        today = self._today()
        candidates = [
            r for r in self.store.all()
            if LeaveStatus(r.status) in ACTIVE_STATUSES
            and (department_id is None or r.department_id == department_id)
        ]
        waiting = [
            r for r in candidates
            if any(a in queue for a in self.machine.allowed_actions(r, role, today))
        ]
        return sorted(waiting, key=lambda r: (r.start_date, r.id))

    def _report_balance_mismatch(
        self, request: LeaveRequest, client_before: Optional[float], client_after: Optional[float]
    ) -> None:
        mismatched = (
            (client_before is not None and request.balance_before is not None and client_before != request.balance_before)
            or (client_after is not None and request.balance_after is not None and client_after != request.balance_after)
        )
        if mismatched:
            self.log_warning(
                f"Client-supplied balance for {request.id} ignored; ledger values were recorded",
                client_balance_before=client_before, client_balance_after=client_after,
                balance_before=request.balance_before, balance_after=request.balance_after,
            )
