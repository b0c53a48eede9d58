from typing import List, Optional

from leavedesk.models.leave_audit_log import LeaveAuditLog
from leavedesk.services.base import BaseService


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        leave_request_id: Optional[str],
        actor_id: Optional[str],
        actor_role: Optional[str],
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> LeaveAuditLog:
        """
        Append an audit entry to the current session.
        Not committed here so the entry shares the fate of the action it records.
        """
        def sanitize(obj):
            if hasattr(obj, "model_dump"):
                return obj.model_dump(mode="json")
            if isinstance(obj, dict):
                return {k: sanitize(v) for k, v in obj.items()}
            if isinstance(obj, list):
                return [sanitize(i) for i in obj]
            return obj

        entry = LeaveAuditLog(
            leave_request_id=leave_request_id,
            action=action,
            actor_id=actor_id,
            actor_role=actor_role,
            from_status=from_status,
            to_status=to_status,
            details=sanitize(details or {}),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def history(self, leave_request_id: str) -> List[LeaveAuditLog]:
        return (
            self.db.query(LeaveAuditLog)
            .filter(LeaveAuditLog.leave_request_id == leave_request_id)
            .order_by(LeaveAuditLog.id)
            .all()
        )
