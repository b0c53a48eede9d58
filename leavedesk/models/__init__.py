# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import leave_request, leave_balance, leave_audit_log

# Explicit class exports for cleaner imports
from .leave_request import LeaveRequest, LeaveStatus, LeaveType, LeaveCategory
from .leave_balance import LeaveBalance
from .leave_audit_log import LeaveAuditLog

__all__ = [
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "LeaveCategory",
    "LeaveBalance",
    "LeaveAuditLog",
]
