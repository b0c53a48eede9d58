from datetime import date
from typing import Iterable, List, Optional

from leavedesk.models.leave_request import ACTIVE_STATUSES, LeaveRequest, LeaveStatus


def ranges_overlap(s1: date, e1: date, s2: date, e2: date) -> bool:
    return s1 <= e2 and s2 <= e1


def find_overlaps(
    requests: Iterable[LeaveRequest],
    employee_id: str,
    start: date,
    end: date,
    exclude_request_id: Optional[str] = None,
) -> List[LeaveRequest]:
    """
    Return every non-terminal request of `employee_id` whose period
    intersects [start, end]. The excluded request is never compared
    against itself.
    """
    return [
        req for req in requests
        if req.employee_id == employee_id
        and req.id != exclude_request_id
        and LeaveStatus(req.status) in ACTIVE_STATUSES
        and ranges_overlap(start, end, req.start_date, req.end_date)
    ]
