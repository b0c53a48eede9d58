import enum
import uuid
from datetime import date

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from leavedesk.database import Base


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    MANAGER_APPROVED = "Manager Approved"
    HR_APPROVED = "HR Approved"
    CEO_APPROVED = "CEO Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


TERMINAL_STATUSES = frozenset({LeaveStatus.REJECTED, LeaveStatus.CANCELLED, LeaveStatus.COMPLETED})
ACTIVE_STATUSES = frozenset(s for s in LeaveStatus if s not in TERMINAL_STATUSES)


class LeaveType(str, enum.Enum):
    ANNUAL = "Annual"
    SICK = "Sick"
    MATERNITY = "Maternity"
    PATERNITY = "Paternity"
    COMPASSIONATE = "Compassionate"
    UNPAID = "Unpaid"
    OFFICIAL = "Official"
    STUDY = "Study"
    PERSONAL = "Personal"
    EMERGENCY = "Emergency"


class LeaveCategory(str, enum.Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


def _new_id() -> str:
    return uuid.uuid4().hex


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String(32), primary_key=True, default=_new_id)
    employee_id = Column(String, index=True, nullable=False)
    department_id = Column(String, index=True, nullable=False)
    user_name = Column(String, nullable=True)
    department_name = Column(String, nullable=True)

    leave_type = Column(String, index=True, nullable=False)
    leave_category = Column(String, default=LeaveCategory.PAID.value, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False, default=0)  # Working days, always server-computed

    reason = Column(Text, nullable=False)
    backup_person = Column(String, nullable=True)
    contact_during_leave = Column(String, nullable=True)
    task_project = Column(String, nullable=True)
    is_emergency = Column(Boolean, default=False, nullable=False)
    emergency_contact = Column(String, nullable=True)
    proof = Column(String, nullable=True)
    remarks = Column(Text, nullable=True)
    hr_notes = Column(Text, nullable=True)

    # Balance accounting, written once at the finalizing approval
    balance_before = Column(Float, nullable=True)
    balance_after = Column(Float, nullable=True)
    balance_deducted = Column(Boolean, default=False, nullable=False)
    balance_restored_at = Column(DateTime(timezone=True), nullable=True)

    status = Column(String, index=True, default=LeaveStatus.PENDING.value, nullable=False)
    approved_by_manager = Column(String, nullable=True)
    manager_action_date = Column(DateTime(timezone=True), nullable=True)
    approved_by_hr = Column(String, nullable=True)
    hr_action_date = Column(DateTime(timezone=True), nullable=True)
    approved_by_ceo = Column(String, nullable=True)
    ceo_action_date = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_by_role = Column(String, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(String, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    applied_on = Column(Date, nullable=False, default=date.today)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Optimistic concurrency counter, bumped by the ORM on every UPDATE
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<LeaveRequest {self.id} {self.employee_id} {self.leave_type} ({self.status})>"

    @property
    def is_terminal(self) -> bool:
        return LeaveStatus(self.status) in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.leave_category == LeaveCategory.PAID.value
