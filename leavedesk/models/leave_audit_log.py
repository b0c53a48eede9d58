from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func
from leavedesk.database import Base


class LeaveAuditLog(Base):
    """Append-only trail of workflow actions taken on a leave request."""
    __tablename__ = "leave_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(String(32), ForeignKey("leave_requests.id", ondelete="SET NULL"), index=True, nullable=True)
    action = Column(String, nullable=False)
    actor_id = Column(String, nullable=True)
    actor_role = Column(String, nullable=True)
    from_status = Column(String, nullable=True)
    to_status = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
