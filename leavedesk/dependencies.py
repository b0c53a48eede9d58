"""
Request-scoped service providers for the routers.

Every provider builds its service on the session yielded by `get_db`, so a
test that overrides `get_db` transparently swaps the persistence of the
whole stack.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from leavedesk.database import get_db
from leavedesk.services.leave_service import LeaveRequestService
from leavedesk.services.state_machine import ApprovalPolicy
from leavedesk.services.store import SqlLeaveRequestStore
from leavedesk.services.workflow import LeaveWorkflowService, default_policy


def get_request_service(db: Session = Depends(get_db)) -> LeaveRequestService:
    return LeaveRequestService(db)


def get_workflow_service(db: Session = Depends(get_db)) -> LeaveWorkflowService:
    return LeaveWorkflowService(db)


def get_store(db: Session = Depends(get_db)) -> SqlLeaveRequestStore:
    return SqlLeaveRequestStore(db)


def get_policy() -> ApprovalPolicy:
    return default_policy()


__all__ = [
    "get_request_service",
    "get_workflow_service",
    "get_store",
    "get_policy",
]
