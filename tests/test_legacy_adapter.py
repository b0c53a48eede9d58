import pytest
import warnings

from leavedesk.core.exceptions import ValidationError
from leavedesk.models.leave_request import LeaveCategory
from leavedesk.services.legacy_adapter import legacy_hr_approve, normalize_hr_approve_args
from leavedesk.services.state_machine import ActorRole


def _fields(payload):
    return payload.model_dump(exclude_none=True, exclude={"role"})

def test_balance_pair():
    with pytest.warns(DeprecationWarning):
        request_id, payload = normalize_hr_approve_args("42", "hr-1", 100, 95)
    assert request_id == "42"
    assert _fields(payload) == {"hr_id": "hr-1", "balance_before": 100, "balance_after": 95}

def test_remarks_only_is_not_heuristic():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        _, payload = normalize_hr_approve_args("42", "hr-1", "approved, all good")
    assert _fields(payload) == {"hr_id": "hr-1", "remarks": "approved, all good"}

def test_balance_pair_then_remarks():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", 100, 95, "ok")
    assert _fields(payload) == {"hr_id": "hr-1", "balance_before": 100, "balance_after": 95, "remarks": "ok"}

def test_balance_pair_remarks_and_notes():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", 20, 15, "ok", "checked roster")
    assert payload.remarks == "ok"
    assert payload.hr_notes == "checked roster"

def test_balance_remarks_balance():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", 20, "ok", 15)
    assert _fields(payload) == {"hr_id": "hr-1", "balance_before": 20, "remarks": "ok", "balance_after": 15}

def test_remarks_first_full_shape():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", "fine", 20, 15, "Unpaid")
    assert payload.remarks == "fine"
    assert payload.balance_before == 20
    assert payload.balance_after == 15
    assert payload.leave_category == LeaveCategory.UNPAID
    assert payload.hr_notes is None

def test_remarks_category_and_notes():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", "fine", "Unpaid", "notes")
    assert _fields(payload) == {
        "hr_id": "hr-1", "remarks": "fine", "leave_category": LeaveCategory.UNPAID, "hr_notes": "notes",
    }

def test_more_than_four_arguments_are_rejected():
    with pytest.raises(ValidationError) as exc_info:
        normalize_hr_approve_args("42", "hr-1", "fine", 20, 15, "Unpaid", "notes")
    assert exc_info.value.details["args"] == ["fine", 20, 15, "Unpaid", "notes"]

def test_strings_after_balance_pair_fill_remarks_first():
    with pytest.warns(DeprecationWarning):
        _, payload = normalize_hr_approve_args("42", "hr-1", 100, 95, None, "notes")
    assert payload.remarks == "notes"
    assert payload.hr_notes is None

def test_no_arguments():
    _, payload = normalize_hr_approve_args("42", "hr-1")
    assert _fields(payload) == {"hr_id": "hr-1"}

def test_unknown_category_is_rejected():
    with pytest.raises(ValidationError):
        normalize_hr_approve_args("42", "hr-1", "fine", 20, 15, "Half Pay")

def test_bool_is_not_a_balance():
    _, payload = normalize_hr_approve_args("42", "hr-1", True)
    assert payload.balance_before is None

def test_legacy_call_is_forwarded_to_workflow():
    calls = []

    class RecordingWorkflow:
        def hr_approve(self, request_id, payload):
            calls.append((request_id, payload))
            return "approved"

    with pytest.warns(DeprecationWarning):
        result = legacy_hr_approve(RecordingWorkflow(), "42", "hr-1", 100, 95, "ok",
                                   role=ActorRole.ADMIN, expected_version=3)
    assert result == "approved"
    request_id, payload = calls[0]
    assert request_id == "42"
    assert payload.role == ActorRole.ADMIN
    assert payload.expected_version == 3
    assert payload.remarks == "ok"
