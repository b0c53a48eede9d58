"""
Compatibility translator for positional HR-approval calls.

Older clients call ``hrApprove(id, hrId, ...)`` with up to four trailing
arguments in more than one order:

    hrApprove(id, hrId, remarks, balanceBefore, balanceAfter, leaveCategory)
    hrApprove(id, hrId, remarks, leaveCategory, hrNotes)
    hrApprove(id, hrId, balanceBefore, balanceAfter, remarks, hrNotes)
    hrApprove(id, hrId, balanceBefore, remarks, balanceAfter)

After a balance pair, strings are taken in order as remarks then hrNotes;
position does not count, so ``(100, 95, None, "notes")`` yields
remarks="notes", not hrNotes.

Which convention a call follows is inferred from argument types only. The
inference is ambiguous by nature, so every call that relies on it emits a
DeprecationWarning; new callers should send `HrApprovalRequest` directly.
This module builds payloads and never mutates state.
"""
import logging
import warnings
from typing import Any, Dict, List, Optional, Tuple

from leavedesk.core.exceptions import ValidationError
from leavedesk.models.leave_request import LeaveCategory
from leavedesk.schemas.leave import HrApprovalRequest
from leavedesk.services.state_machine import ActorRole

logger = logging.getLogger(__name__)

MAX_LEGACY_ARGS = 4


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _resolve(args: List[Any]) -> Tuple[Dict[str, Any], bool]:
    """Map the arguments after (id, hrId) onto payload fields."""
    fields: Dict[str, Any] = {}
    heuristic = False
    first = args[0] if args else None
    rest = args[1:]

    if _is_number(first):
        heuristic = True
        fields["balance_before"] = first
        second = rest[0] if rest else None
        if _is_number(second):
            fields["balance_after"] = second
            strings = [a for a in rest[1:] if isinstance(a, str)]
            for name, value in zip(("remarks", "hr_notes"), strings):
                fields[name] = value
        elif isinstance(second, str):
            fields["remarks"] = second
            third = rest[1] if len(rest) > 1 else None
            if _is_number(third):
                fields["balance_after"] = third
    elif isinstance(first, str):
        fields["remarks"] = first
        heuristic = any(a is not None for a in rest)
        numbers = [a for a in rest if _is_number(a)]
        strings = [a for a in rest if isinstance(a, str)]
        for name, value in zip(("balance_before", "balance_after"), numbers):
            fields[name] = value
        for name, value in zip(("leave_category", "hr_notes"), strings):
            fields[name] = value

    return fields, heuristic


def normalize_hr_approve_args(request_id: str, hr_id: str, *args: Any) -> Tuple[str, HrApprovalRequest]:
    """
    Rebuild the canonical HR approval payload from a positional call.

    >>> normalize_hr_approve_args("42", "hr-1", 100, 95, "ok")[1].remarks
    'ok'
    """
    if len(args) > MAX_LEGACY_ARGS:
        raise ValidationError(
            f"Legacy HR approval takes at most {MAX_LEGACY_ARGS} arguments after hrId, got {len(args)}",
            details={"args": list(args)}
        )
    fields, heuristic = _resolve(list(args))

    category = fields.get("leave_category")
    if category is not None and category not in {c.value for c in LeaveCategory}:
        raise ValidationError(
            f"Unrecognized leave category '{category}' in legacy HR approval call",
            details={"args": list(args)}
        )

    if heuristic:
        message = (
            "Positional hrApprove arguments were interpreted by type; "
            "send a named HR approval payload instead"
        )
        warnings.warn(message, DeprecationWarning, stacklevel=2)
        logger.warning(message, extra={"leave_request_id": request_id, "resolved_fields": sorted(fields)})

    return request_id, HrApprovalRequest(hr_id=hr_id, **fields)


def legacy_hr_approve(
    workflow,
    request_id: str,
    hr_id: str,
    *args: Any,
    role: ActorRole = ActorRole.HR,
    expected_version: Optional[int] = None,
):
    """Normalize a positional call and run it through the regular HR approval."""
    request_id, payload = normalize_hr_approve_args(request_id, hr_id, *args)
    payload = payload.model_copy(update={"role": role, "expected_version": expected_version})
    return workflow.hr_approve(request_id, payload)
