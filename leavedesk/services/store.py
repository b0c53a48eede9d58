"""
Persistence port for leave requests.

Services depend on the `LeaveRequestStore` protocol; `SqlLeaveRequestStore`
implements it on a SQLAlchemy session. The store flushes but never
commits: transaction boundaries belong to the calling service.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from leavedesk.core.exceptions import ConcurrentModificationError
from leavedesk.models.leave_request import LeaveRequest


@dataclass
class LeaveRequestFilters:
    employee_id: Optional[str] = None
    department_id: Optional[str] = None
    leave_type: Optional[str] = None
    status: Optional[str] = None
    is_emergency: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None


class LeaveRequestStore(Protocol):
    def get(self, request_id: str) -> Optional[LeaveRequest]: ...

    def list(self, filters: LeaveRequestFilters, skip: int = 0, limit: int = 100) -> Tuple[List[LeaveRequest], int]: ...

    def for_employee(self, employee_id: str) -> List[LeaveRequest]: ...

    def all(self) -> List[LeaveRequest]: ...

    def create(self, request: LeaveRequest) -> LeaveRequest: ...

    def update(self, request: LeaveRequest) -> LeaveRequest: ...

    def delete(self, request: LeaveRequest) -> None: ...


class SqlLeaveRequestStore:

    def __init__(self, db: Session):
        self.db = db

    def get(self, request_id: str) -> Optional[LeaveRequest]:
        return self.db.get(LeaveRequest, request_id)

    def _filtered(self, filters: LeaveRequestFilters):
        query = self.db.query(LeaveRequest)
        if filters.employee_id:
            query = query.filter(LeaveRequest.employee_id == filters.employee_id)
        if filters.department_id:
            query = query.filter(LeaveRequest.department_id == filters.department_id)
        if filters.leave_type:
            query = query.filter(LeaveRequest.leave_type == filters.leave_type)
        if filters.status:
            query = query.filter(LeaveRequest.status == filters.status)
        if filters.is_emergency is not None:
            query = query.filter(LeaveRequest.is_emergency == filters.is_emergency)
        # Date filters select requests intersecting the window
        if filters.start_date:
            query = query.filter(LeaveRequest.end_date >= filters.start_date)
        if filters.end_date:
            query = query.filter(LeaveRequest.start_date <= filters.end_date)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(or_(
                LeaveRequest.reason.ilike(pattern),
                LeaveRequest.user_name.ilike(pattern),
                LeaveRequest.employee_id.ilike(pattern),
            ))
        return query

    def list(self, filters: LeaveRequestFilters, skip: int = 0, limit: int = 100) -> Tuple[List[LeaveRequest], int]:
        query = self._filtered(filters)
        total = query.count()
        items = (
            query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id)
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def for_employee(self, employee_id: str) -> List[LeaveRequest]:
        return self.db.query(LeaveRequest).filter(LeaveRequest.employee_id == employee_id).all()

    def all(self) -> List[LeaveRequest]:
        return self.db.query(LeaveRequest).all()

    def create(self, request: LeaveRequest) -> LeaveRequest:
        self.db.add(request)
        self.db.flush()
        return request

    def update(self, request: LeaveRequest) -> LeaveRequest:
        try:
            self.db.flush()
        except StaleDataError as e:
            raise ConcurrentModificationError() from e
        return request

    def delete(self, request: LeaveRequest) -> None:
        self.db.delete(request)
        self.db.flush()
