"""
Leave Balance Ledger

Per-employee, per-bucket running allotments. The ledger is only written
as a side effect of a finalizing approval (debit) or of a rejection,
cancellation or deletion of an already debited request (restore).
"""
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from leavedesk.core.config import settings
from leavedesk.core.exceptions import InsufficientBalanceError, ValidationError
from leavedesk.models.leave_balance import LeaveBalance
from leavedesk.models.leave_request import LeaveRequest, LeaveType
from leavedesk.services.base import BaseService

BALANCE_BUCKETS = ("annual", "sick", "compassionate", "paternity", "maternity", "study", "personal")

LEAVE_TYPE_BUCKETS: Dict[LeaveType, Optional[str]] = {
    LeaveType.ANNUAL: "annual",
    LeaveType.SICK: "sick",
    LeaveType.COMPASSIONATE: "compassionate",
    LeaveType.PATERNITY: "paternity",
    LeaveType.MATERNITY: "maternity",
    LeaveType.STUDY: "study",
    LeaveType.PERSONAL: "personal",
    LeaveType.EMERGENCY: "annual",
    LeaveType.UNPAID: None,
    LeaveType.OFFICIAL: None,
}


def bucket_for(leave_type: str) -> Optional[str]:
    return LEAVE_TYPE_BUCKETS[LeaveType(leave_type)]


class LeaveBalanceLedger(BaseService):

    def __init__(self, db: Session, allotments: Optional[Dict[str, float]] = None):
        super().__init__(db)
        self.allotments = allotments if allotments is not None else settings.leave.default_allotments

    def _get(self, employee_id: str, bucket: str, year: int) -> Optional[LeaveBalance]:
        return self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type == bucket,
            LeaveBalance.year == year
        ).first()

    def get_or_create(self, employee_id: str, bucket: str, year: int) -> LeaveBalance:
        if bucket not in BALANCE_BUCKETS:
            raise ValidationError(f"Unknown balance bucket: {bucket}")
        balance = self._get(employee_id, bucket, year)
        if balance is None:
            total = float(self.allotments.get(bucket, 0.0))
            balance = LeaveBalance(
                employee_id=employee_id,
                leave_type=bucket,
                total_days=total,
                used_days=0.0,
                remaining_days=total,
                year=year
            )
            self.db.add(balance)
            self.db.flush()
        return balance

    def get_balances(self, employee_id: str, year: int) -> Dict[str, float]:
        """Remaining days per bucket. Buckets never touched report their default allotment."""
        rows = self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.year == year
        ).all()
        remaining = {bucket: float(self.allotments.get(bucket, 0.0)) for bucket in BALANCE_BUCKETS}
        for row in rows:
            remaining[row.leave_type] = row.remaining_days
        return remaining

    def set_allotment(self, employee_id: str, bucket: str, total_days: float, year: int) -> LeaveBalance:
        if total_days < 0:
            raise ValidationError("Allotment cannot be negative")
        balance = self.get_or_create(employee_id, bucket, year)
        if total_days < balance.used_days:
            raise ValidationError(
                f"Allotment of {total_days} is below the {balance.used_days} days already used"
            )
        balance.total_days = total_days
        balance.remaining_days = total_days - balance.used_days
        self.db.flush()
        self.log_info(f"Allotment set: {employee_id}/{bucket}/{year} = {total_days}")
        return balance

    def finalize(self, request: LeaveRequest) -> None:
        """
        Record balance_before/balance_after and debit paid leave.
        The balance fields are written at most once per request.
        """
        if request.balance_after is not None:
            return
        bucket = bucket_for(request.leave_type)
        if bucket is None:
            return

        balance = self.get_or_create(request.employee_id, bucket, request.start_date.year)
        before = balance.remaining_days

        if not request.is_paid:
            request.balance_before = before
            request.balance_after = before
            return

        days = float(request.total_days)
        if before < days:
            raise InsufficientBalanceError(bucket, days, before)

        balance.used_days += days
        balance.remaining_days -= days
        request.balance_before = before
        request.balance_after = before - days
        request.balance_deducted = True
        self.db.flush()
        self.log_info(
            f"Debited {days} {bucket} day(s) for {request.employee_id}",
            leave_request_id=request.id, balance_after=request.balance_after
        )

    def restore(self, request: LeaveRequest) -> bool:
        """Credit back an outstanding debit. Returns True when the ledger changed."""
        if not request.balance_deducted:
            return False
        bucket = bucket_for(request.leave_type)
        balance = self.get_or_create(request.employee_id, bucket, request.start_date.year)
        days = float(request.total_days)
        balance.used_days -= days
        balance.remaining_days += days
        request.balance_deducted = False
        request.balance_restored_at = datetime.now(timezone.utc)
        self.db.flush()
        self.log_info(
            f"Restored {days} {bucket} day(s) for {request.employee_id}",
            leave_request_id=request.id
        )
        return True
