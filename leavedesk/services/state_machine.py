"""
Leave approval state machine.

Transitions are table driven: every action names the states it may start
from, the roles allowed to perform it and the state it leads to. The
machine validates and applies a transition to a request object and
reports the balance effect the caller must apply. It never touches
storage.

    Pending -> Manager Approved -> HR Approved -> [CEO Approved] -> Completed
    any non-terminal state -> Rejected
    Pending / Manager Approved / HR Approved -> Cancelled
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, FrozenSet, Optional

from leavedesk.core.exceptions import InvalidTransitionError, UnauthorizedActionError
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus


class ActorRole(str, enum.Enum):
    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    HR = "HR"
    CEO = "CEO"
    ADMIN = "Admin"


class LeaveAction(str, enum.Enum):
    MANAGER_APPROVE = "manager_approve"
    HR_APPROVE = "hr_approve"
    CEO_APPROVE = "ceo_approve"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"


class BalanceEffect(str, enum.Enum):
    NONE = "none"
    FINALIZE = "finalize"
    RESTORE = "restore"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole


@dataclass(frozen=True)
class Transition:
    sources: FrozenSet[LeaveStatus]
    roles: FrozenSet[ActorRole]
    target: LeaveStatus


TRANSITIONS: Dict[LeaveAction, Transition] = {
    LeaveAction.MANAGER_APPROVE: Transition(
        sources=frozenset({LeaveStatus.PENDING}),
        roles=frozenset({ActorRole.MANAGER, ActorRole.CEO, ActorRole.ADMIN}),
        target=LeaveStatus.MANAGER_APPROVED,
    ),
    LeaveAction.HR_APPROVE: Transition(
        sources=frozenset({LeaveStatus.MANAGER_APPROVED}),
        roles=frozenset({ActorRole.HR, ActorRole.CEO, ActorRole.ADMIN}),
        target=LeaveStatus.HR_APPROVED,
    ),
    LeaveAction.CEO_APPROVE: Transition(
        sources=frozenset({LeaveStatus.HR_APPROVED}),
        roles=frozenset({ActorRole.CEO, ActorRole.ADMIN}),
        target=LeaveStatus.CEO_APPROVED,
    ),
    LeaveAction.REJECT: Transition(
        sources=frozenset({
            LeaveStatus.PENDING, LeaveStatus.MANAGER_APPROVED,
            LeaveStatus.HR_APPROVED, LeaveStatus.CEO_APPROVED,
        }),
        roles=frozenset({ActorRole.MANAGER, ActorRole.HR, ActorRole.CEO, ActorRole.ADMIN}),
        target=LeaveStatus.REJECTED,
    ),
    LeaveAction.CANCEL: Transition(
        sources=frozenset({LeaveStatus.PENDING, LeaveStatus.MANAGER_APPROVED, LeaveStatus.HR_APPROVED}),
        roles=frozenset({ActorRole.EMPLOYEE, ActorRole.ADMIN}),
        target=LeaveStatus.CANCELLED,
    ),
    LeaveAction.COMPLETE: Transition(
        sources=frozenset({LeaveStatus.HR_APPROVED, LeaveStatus.CEO_APPROVED}),
        roles=frozenset({ActorRole.HR, ActorRole.ADMIN}),
        target=LeaveStatus.COMPLETED,
    ),
}


@dataclass(frozen=True)
class ApprovalPolicy:
    ceo_threshold_days: int = 10
    enforce_completion_date: bool = True

    def requires_ceo(self, request: LeaveRequest) -> bool:
        return (request.total_days or 0) > self.ceo_threshold_days


@dataclass(frozen=True)
class TransitionResult:
    action: LeaveAction
    from_status: LeaveStatus
    to_status: LeaveStatus
    balance_effect: BalanceEffect


class LeaveStateMachine:

    def __init__(self, policy: Optional[ApprovalPolicy] = None):
        self.policy = policy or ApprovalPolicy()

    def allowed_actions(self, request: LeaveRequest, role: ActorRole, today: Optional[date] = None) -> list:
        """Actions `role` could perform on `request` right now."""
        allowed = []
        for action, transition in TRANSITIONS.items():
            if role not in transition.roles:
                continue
            try:
                self._check_state(request, action, transition, today or date.today())
            except InvalidTransitionError:
                continue
            allowed.append(action)
        return allowed

    def check(self, request: LeaveRequest, action: LeaveAction, actor: Actor, today: date) -> Transition:
        transition = TRANSITIONS[action]
        if actor.role not in transition.roles:
            raise UnauthorizedActionError(
                f"Role {actor.role.value} cannot perform {action.value}; "
                f"allowed: {sorted(r.value for r in transition.roles)}"
            )
        if action == LeaveAction.CANCEL and actor.role == ActorRole.EMPLOYEE and actor.id != request.employee_id:
            raise UnauthorizedActionError("Employees can only cancel their own leave requests")
        self._check_state(request, action, transition, today)
        return transition

    def _check_state(self, request: LeaveRequest, action: LeaveAction, transition: Transition, today: date) -> None:
        current = LeaveStatus(request.status)
        if current not in transition.sources:
            raise InvalidTransitionError(
                f"Cannot {action.value} a request in status '{current.value}'",
                details={"status": current.value, "action": action.value}
            )
        needs_ceo = self.policy.requires_ceo(request)
        if action == LeaveAction.CEO_APPROVE and not needs_ceo:
            raise InvalidTransitionError(
                f"CEO approval is not required for requests of {request.total_days} day(s)",
                details={"status": current.value, "action": action.value}
            )
        if action == LeaveAction.COMPLETE:
            if current == LeaveStatus.HR_APPROVED and needs_ceo:
                raise InvalidTransitionError(
                    "Request still awaits CEO approval",
                    details={"status": current.value, "action": action.value}
                )
            if self.policy.enforce_completion_date and today <= request.end_date:
                raise InvalidTransitionError(
                    f"Leave period ends on {request.end_date}; it can be completed from the following day",
                    details={"status": current.value, "action": action.value}
                )

    def apply(
        self,
        request: LeaveRequest,
        action: LeaveAction,
        actor: Actor,
        remarks: Optional[str] = None,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        today = today or date.today()
        now = now or datetime.now(timezone.utc)
        transition = self.check(request, action, actor, today)
        from_status = LeaveStatus(request.status)

        if action == LeaveAction.MANAGER_APPROVE:
            request.approved_by_manager = actor.id
            request.manager_action_date = now
        elif action == LeaveAction.HR_APPROVE:
            request.approved_by_hr = actor.id
            request.hr_action_date = now
        elif action == LeaveAction.CEO_APPROVE:
            request.approved_by_ceo = actor.id
            request.ceo_action_date = now
        elif action == LeaveAction.REJECT:
            request.rejected_by = actor.id
            request.rejected_by_role = actor.role.value
            request.rejected_at = now
        elif action == LeaveAction.CANCEL:
            request.cancelled_by = actor.id
            request.cancelled_at = now
        elif action == LeaveAction.COMPLETE:
            request.completed_by = actor.id
            request.completed_at = now

        if remarks is not None:
            request.remarks = remarks
        request.status = transition.target.value

        return TransitionResult(
            action=action,
            from_status=from_status,
            to_status=transition.target,
            balance_effect=self._balance_effect(request, action),
        )

    def _balance_effect(self, request: LeaveRequest, action: LeaveAction) -> BalanceEffect:
        if action == LeaveAction.HR_APPROVE and not self.policy.requires_ceo(request):
            return BalanceEffect.FINALIZE
        if action == LeaveAction.CEO_APPROVE and request.balance_after is None:
            return BalanceEffect.FINALIZE
        if action in (LeaveAction.REJECT, LeaveAction.CANCEL) and request.balance_deducted:
            return BalanceEffect.RESTORE
        return BalanceEffect.NONE
