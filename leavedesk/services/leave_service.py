"""
Leave Request Service Layer

Submission, edits, administrative deletion and read models of leave
requests. Workflow transitions live in `leavedesk.services.workflow`.

Rules enforced here:
- total_days is always recomputed from the dates; client values are ignored
- no two active requests of one employee may overlap
- terminal requests are read-only
"""
import math
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from leavedesk.core.exceptions import (
    ConcurrentModificationError,
    InvalidTransitionError,
    NotFoundError,
    OverlapDetectedError,
    UnauthorizedActionError,
    ValidationError,
)
from leavedesk.models.leave_audit_log import LeaveAuditLog
from leavedesk.models.leave_request import LeaveCategory, LeaveRequest, LeaveStatus
from leavedesk.schemas.leave import LeaveRequestCreate, LeaveRequestUpdate
from leavedesk.services.audit import AuditService
from leavedesk.services.base import BaseService
from leavedesk.services.ledger import LeaveBalanceLedger, bucket_for
from leavedesk.services.overlap import find_overlaps
from leavedesk.services.state_machine import Actor, ActorRole
from leavedesk.services.store import LeaveRequestFilters, LeaveRequestStore, SqlLeaveRequestStore
from leavedesk.services.working_days import compute_working_days

NARRATIVE_FIELDS = (
    "reason", "proof", "backup_person", "contact_during_leave",
    "task_project", "is_emergency", "emergency_contact", "hr_notes",
)

DELETE_ROLES = frozenset({ActorRole.HR, ActorRole.ADMIN})

# Columns that cannot be cleared by an explicit null in an edit
REQUIRED_FIELDS = ("leave_type", "start_date", "end_date", "reason", "is_emergency", "leave_category")


def default_category(leave_type: str) -> LeaveCategory:
    return LeaveCategory.PAID if bucket_for(leave_type) else LeaveCategory.UNPAID


def _clean_reason(reason: Optional[str]) -> str:
    if reason is None or not reason.strip():
        raise ValidationError("Reason is required", details={"field": "reason"})
    return reason.strip()


class LeaveRequestService(BaseService):

    def __init__(
        self,
        db: Session,
        store: Optional[LeaveRequestStore] = None,
        ledger: Optional[LeaveBalanceLedger] = None,
    ):
        super().__init__(db)
        self.store = store or SqlLeaveRequestStore(db)
        self.ledger = ledger or LeaveBalanceLedger(db)
        self.audit = AuditService(db)

    # --- Reads ---

    def get(self, request_id: str) -> LeaveRequest:
        request = self.store.get(request_id)
        if request is None:
            raise NotFoundError(f"Leave request {request_id} not found")
        return request

    def list(self, filters: LeaveRequestFilters, skip: int = 0, limit: int = 100) -> Dict[str, Any]:
        items, total = self.store.list(filters, skip=skip, limit=limit)
        return {
            "leave_requests": items,
            "total": total,
            "page": skip // limit + 1 if limit else 1,
            "pages": math.ceil(total / limit) if limit else 1,
        }

    def find_overlaps(
        self, employee_id: str, start: date, end: date, exclude_request_id: Optional[str] = None
    ) -> List[LeaveRequest]:
        if end < start:
            raise ValidationError(f"End date {end} is before start date {start}")
        return find_overlaps(self.store.for_employee(employee_id), employee_id, start, end, exclude_request_id)

    def history(self, request_id: str) -> List[LeaveAuditLog]:
        self.get(request_id)
        return self.audit.history(request_id)

    def get_balance(self, employee_id: str, year: Optional[int] = None) -> Dict[str, Any]:
        year = year or date.today().year
        return {"employee_id": employee_id, "year": year, **self.ledger.get_balances(employee_id, year)}

    def set_allotment(self, employee_id: str, bucket: str, total_days: float, year: Optional[int] = None) -> Dict[str, Any]:
        year = year or date.today().year
        try:
            self.ledger.set_allotment(employee_id, bucket, total_days, year)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_balance(employee_id, year)

    # --- Writes ---

    def _ensure_no_overlap(self, employee_id: str, start: date, end: date, exclude_request_id: Optional[str] = None):
        overlaps = self.find_overlaps(employee_id, start, end, exclude_request_id)
        if overlaps:
            self.log_warning(
                f"Overlap detected for {employee_id} between {start} and {end}",
                overlapping_ids=[r.id for r in overlaps]
            )
            raise OverlapDetectedError([r.id for r in overlaps])

    def create(self, payload: LeaveRequestCreate) -> LeaveRequest:
        reason = _clean_reason(payload.reason)
        total_days = compute_working_days(payload.start_date, payload.end_date)
        category = payload.leave_category or default_category(payload.leave_type.value)

        try:
            self._ensure_no_overlap(payload.employee_id, payload.start_date, payload.end_date)
            request = LeaveRequest(
                employee_id=payload.employee_id,
                department_id=payload.department_id,
                user_name=payload.user_name,
                department_name=payload.department_name,
                leave_type=payload.leave_type.value,
                leave_category=category.value,
                start_date=payload.start_date,
                end_date=payload.end_date,
                total_days=total_days,
                reason=reason,
                proof=payload.proof,
                applied_on=payload.applied_on or date.today(),
                backup_person=payload.backup_person,
                contact_during_leave=payload.contact_during_leave,
                task_project=payload.task_project,
                is_emergency=payload.is_emergency,
                emergency_contact=payload.emergency_contact,
                hr_notes=payload.hr_notes,
                status=LeaveStatus.PENDING.value,
                balance_deducted=False,
            )
            self.store.create(request)
            self.audit.log_action(
                action="create",
                leave_request_id=request.id,
                actor_id=payload.employee_id,
                actor_role=ActorRole.EMPLOYEE.value,
                to_status=LeaveStatus.PENDING.value,
                details={"total_days": total_days, "client_total_days": payload.total_days},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        self.log_info(
            f"Leave request {request.id} submitted by {request.employee_id}: "
            f"{request.leave_type} {request.start_date}..{request.end_date} ({total_days} day(s))"
        )
        return request

    def update(self, request_id: str, payload: LeaveRequestUpdate) -> LeaveRequest:
        changes = payload.model_dump(exclude_unset=True, exclude={"expected_version", "total_days"})
        try:
            request = self.get(request_id)
            if payload.expected_version is not None and request.version != payload.expected_version:
                raise ConcurrentModificationError()
            if request.is_terminal:
                raise InvalidTransitionError(
                    f"Leave request is {request.status} and can no longer be edited",
                    details={"status": request.status}
                )
            cleared = sorted(field for field in REQUIRED_FIELDS if field in changes and changes[field] is None)
            if cleared:
                raise ValidationError(
                    f"Fields cannot be set to null: {', '.join(cleared)}",
                    details={"fields": cleared}
                )

            period_fields = {"start_date", "end_date", "leave_type"} & changes.keys()
            if period_fields and request.status != LeaveStatus.PENDING.value:
                raise InvalidTransitionError(
                    f"Dates and leave type can only change while the request is Pending (now {request.status})",
                    details={"status": request.status, "fields": sorted(period_fields)}
                )
            if "leave_category" in changes and request.balance_after is not None:
                raise InvalidTransitionError("Leave category is fixed once the balance has been finalized")

            if "reason" in changes:
                changes["reason"] = _clean_reason(changes["reason"])
            for field in NARRATIVE_FIELDS:
                if field in changes:
                    setattr(request, field, changes[field])
            if changes.get("leave_category") is not None:
                request.leave_category = changes["leave_category"].value

            if period_fields:
                start = changes.get("start_date") or request.start_date
                end = changes.get("end_date") or request.end_date
                request.total_days = compute_working_days(start, end)
                self._ensure_no_overlap(request.employee_id, start, end, exclude_request_id=request.id)
                request.start_date = start
                request.end_date = end
                if changes.get("leave_type") is not None:
                    request.leave_type = changes["leave_type"].value
                    if "leave_category" not in changes:
                        request.leave_category = default_category(request.leave_type).value

            self.store.update(request)
            self.audit.log_action(
                action="update",
                leave_request_id=request.id,
                actor_id=request.employee_id,
                actor_role=ActorRole.EMPLOYEE.value,
                from_status=request.status,
                to_status=request.status,
                details={"fields": sorted(changes)},
            )
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentModificationError() from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        return request

    def delete(self, request_id: str, actor: Actor) -> None:
        """Administrative removal, outside the approval workflow."""
        if actor.role not in DELETE_ROLES:
            raise UnauthorizedActionError(f"Role {actor.role.value} cannot delete leave requests")
        try:
            request = self.get(request_id)
            restored = False
            if request.status != LeaveStatus.COMPLETED.value:
                restored = self.ledger.restore(request)
            self.audit.log_action(
                action="delete",
                leave_request_id=None,
                actor_id=actor.id,
                actor_role=actor.role.value,
                from_status=request.status,
                details={"deleted_request_id": request.id, "balance_restored": restored},
            )
            self.store.delete(request)
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentModificationError() from e
        except Exception:
            self.db.rollback()
            raise
        self.log_info(f"Leave request {request_id} deleted by {actor.role.value} {actor.id}")
