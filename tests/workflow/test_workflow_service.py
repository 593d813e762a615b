from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from src.hr_workflow.hr_workflow.core.enums import RequestStatus, RequestType, Role, StepStatus
from src.hr_workflow.hr_workflow.core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConfigurationError,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedApproverError,
    ValidationError,
)
from tests.fakes import build_world, chain, make_employee, standard_employees

NOW = datetime(2025, 3, 1, 9, 0, 0)
LEAVE = {"leave_from_date": "2025-03-10", "leave_to_date": "2025-03-12", "leave_reason": "Family visit"}


def _submit_leave(w, requester=5, payload=None):
    return w.workflow.submit("VAC", payload or LEAVE, requester, now=NOW)


def test_submit_assigns_first_level_approver():
    w = build_world()

    req = _submit_leave(w)

    assert req.request_type == RequestType.LEAVE
    assert req.status == RequestStatus.PENDING
    assert req.next_app_level == 1
    assert req.next_approval == 42
    assert req.requester_id == 5 and req.employee_no == 5
    assert req.effective_date.isoformat() == "2025-03-10"
    assert req.details.leave_days == Decimal("3")
    assert req.version == 0
    assert 5 in w.employees.locked


def test_full_approval_deducts_leave_balance_once():
    w = build_world()
    req = _submit_leave(w)

    req = w.workflow.approve(req.request_id, 42, expected_version=req.version, now=NOW)
    assert req.status == RequestStatus.PENDING
    assert (req.next_app_level, req.next_approval) == (2, 2)
    assert w.employees.rows[5].leave_balance_days == Decimal("10")

    req = w.workflow.approve(req.request_id, 2, expected_version=req.version, now=NOW)
    assert req.status == RequestStatus.APPROVED
    assert req.approved_by == 2
    assert req.approved_date == NOW
    assert req.next_app_level is None and req.next_approval is None
    assert req.closed_at_level == 2
    assert req.version == 2
    assert w.employees.rows[5].leave_balance_days == Decimal("7")
    assert (f"request:{req.request_id}", "FINALIZE") in w.ledger.claims


def test_reject_keeps_balance_and_records_reason():
    w = build_world()
    req = _submit_leave(w)
    req = w.workflow.approve(req.request_id, 42, now=NOW)

    req = w.workflow.reject(req.request_id, 2, "Peak season", now=NOW)

    assert req.status == RequestStatus.REJECTED
    assert req.rejection_reason == "Peak season"
    assert req.closed_at_level == 2
    assert req.next_approval is None
    assert w.employees.rows[5].leave_balance_days == Decimal("10")


def test_reject_requires_reason():
    w = build_world()
    req = _submit_leave(w)

    with pytest.raises(ValidationError):
        w.workflow.reject(req.request_id, 42, "   ", now=NOW)

    assert w.requests.rows[req.request_id].status == RequestStatus.PENDING


def test_only_current_approver_can_act():
    w = build_world()
    req = _submit_leave(w)

    with pytest.raises(UnauthorizedApproverError):
        w.workflow.approve(req.request_id, 99, now=NOW)
    with pytest.raises(UnauthorizedApproverError):
        w.workflow.reject(req.request_id, 2, "not my level", now=NOW)

    stored = w.requests.rows[req.request_id]
    assert stored.version == 0
    assert stored.next_approval == 42


def test_requester_cannot_approve_own_request_unless_seated():
    w = build_world()
    req = _submit_leave(w)

    with pytest.raises(UnauthorizedApproverError):
        w.workflow.approve(req.request_id, 5, now=NOW)


def test_closed_request_cannot_be_approved_again():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.reject(req.request_id, 42, "No", now=NOW)

    with pytest.raises(InvalidStateError):
        w.workflow.approve(req.request_id, 42, now=NOW)


def test_stale_version_is_refused():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.approve(req.request_id, 42, expected_version=0, now=NOW)

    with pytest.raises(ConcurrentModificationError):
        w.workflow.approve(req.request_id, 2, expected_version=0, now=NOW)

    assert w.requests.rows[req.request_id].status == RequestStatus.PENDING


def test_lost_compare_and_swap_is_reported(monkeypatch):
    w = build_world()
    req = _submit_leave(w)
    monkeypatch.setattr(w.requests, "update_state", lambda request, *, expected_version: False)

    with pytest.raises(ConcurrentModificationError):
        w.workflow.approve(req.request_id, 42, now=NOW)


def test_failed_side_effect_rolls_back_the_transition():
    w = build_world()
    req = _submit_leave(w)
    req = w.workflow.approve(req.request_id, 42, now=NOW)
    # balance spent elsewhere between submission and final approval
    w.employees.rows[5] = replace(w.employees.rows[5], leave_balance_days=Decimal("1"))

    with pytest.raises(InsufficientBalanceError):
        w.workflow.approve(req.request_id, 2, now=NOW)

    stored = w.requests.rows[req.request_id]
    assert stored.status == RequestStatus.PENDING
    assert stored.next_app_level == 2
    assert stored.version == 1
    assert w.ledger.claims == set()
    assert w.employees.rows[5].leave_balance_days == Decimal("1")
    assert w.tx.rollbacks == 1


def test_unknown_request_is_not_found():
    w = build_world()

    with pytest.raises(NotFoundError):
        w.workflow.approve(12345, 42, now=NOW)
    with pytest.raises(NotFoundError):
        w.workflow.get(12345)


def test_submit_without_chain_is_a_configuration_error():
    w = build_world(chains=[])

    with pytest.raises(ConfigurationError):
        _submit_leave(w)
    assert w.requests.rows == {}


def test_submit_with_vacant_first_seat_is_a_configuration_error():
    w = build_world()
    w.org.departments[20] = replace(w.org.departments[20], manager_no=None)

    with pytest.raises(ConfigurationError):
        _submit_leave(w)
    assert w.requests.rows == {}


def test_inactive_requester_cannot_submit():
    w = build_world()

    with pytest.raises(ValidationError):
        _submit_leave(w, requester=77)


def test_unknown_request_type_is_rejected():
    w = build_world()

    with pytest.raises(ValidationError):
        w.workflow.submit("HOLIDAY", {}, 5, now=NOW)


def test_request_type_accepts_enum_name():
    w = build_world()

    req = w.workflow.submit("leave", LEAVE, 5, now=NOW)

    assert req.request_type == RequestType.LEAVE


def test_hr_may_submit_on_behalf_of_employee():
    w = build_world()

    req = w.workflow.submit("VAC", dict(LEAVE, employee_no=5), 2, now=NOW)

    assert req.requester_id == 2
    assert req.employee_no == 5
    assert req.next_approval == 42


def test_plain_employee_cannot_submit_for_someone_else():
    w = build_world()

    with pytest.raises(AuthorizationError):
        w.workflow.submit("VAC", dict(LEAVE, employee_no=5), 99, now=NOW)


def test_cancel_pending_request():
    w = build_world()
    req = _submit_leave(w)
    req = w.workflow.approve(req.request_id, 42, now=NOW)

    req = w.workflow.cancel(req.request_id, 5, "Plans changed", now=NOW)

    assert req.status == RequestStatus.CANCELLED
    assert req.cancellation_reason == "Plans changed"
    assert req.closed_at_level == 2
    assert req.next_approval is None
    assert w.employees.rows[5].leave_balance_days == Decimal("10")


def test_only_requester_can_cancel():
    w = build_world()
    req = _submit_leave(w)

    with pytest.raises(AuthorizationError):
        w.workflow.cancel(req.request_id, 42, "Not mine", now=NOW)


def test_cancel_approved_leave_before_start_refunds_balance():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.approve(req.request_id, 42, now=NOW)
    w.workflow.approve(req.request_id, 2, now=NOW)
    assert w.employees.rows[5].leave_balance_days == Decimal("7")

    req = w.workflow.cancel(req.request_id, 5, "Trip cancelled", now=NOW)

    assert req.status == RequestStatus.CANCELLED
    assert w.employees.rows[5].leave_balance_days == Decimal("10")
    assert (f"request:{req.request_id}", "COMPENSATE") in w.ledger.claims

    with pytest.raises(InvalidStateError):
        w.workflow.cancel(req.request_id, 5, "again", now=NOW)
    assert w.employees.rows[5].leave_balance_days == Decimal("10")


def test_cancel_approved_leave_on_or_after_start_is_refused():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.approve(req.request_id, 42, now=NOW)
    w.workflow.approve(req.request_id, 2, now=NOW)

    with pytest.raises(InvalidStateError):
        w.workflow.cancel(req.request_id, 5, "Too late", now=datetime(2025, 3, 10, 8, 0, 0))

    assert w.requests.rows[req.request_id].status == RequestStatus.APPROVED
    assert w.employees.rows[5].leave_balance_days == Decimal("7")


def test_cancel_rejected_request_is_refused():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.reject(req.request_id, 42, "No", now=NOW)

    with pytest.raises(InvalidStateError):
        w.workflow.cancel(req.request_id, 5, "why", now=NOW)


def test_overlapping_leave_is_refused_until_first_is_closed():
    w = build_world()
    first = _submit_leave(w)

    with pytest.raises(ValidationError):
        _submit_leave(w, payload={"leave_from_date": "2025-03-11", "leave_to_date": "2025-03-13"})

    w.workflow.cancel(first.request_id, 5, "Rebooking", now=NOW)
    again = _submit_leave(w, payload={"leave_from_date": "2025-03-11", "leave_to_date": "2025-03-13"})
    assert again.status == RequestStatus.PENDING


def test_department_specific_chain_takes_precedence():
    chains = chain("VAC", "GetHRManager", department_code=20) + chain("VAC", "GetDirectManager", "GetHRManager")
    w = build_world(chains=chains)

    req = _submit_leave(w)
    assert req.next_approval == 2

    req = w.workflow.approve(req.request_id, 2, now=NOW)
    assert req.status == RequestStatus.APPROVED
    assert req.closed_at_level == 1


def test_timeline_tracks_progress():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.approve(req.request_id, 42, now=NOW)

    steps = w.workflow.timeline(req.request_id)

    assert [(s.level_no, s.level_name, s.approver_no, s.status) for s in steps] == [
        (1, "Direct Manager", 42, StepStatus.COMPLETED),
        (2, "HR Manager", 2, StepStatus.PENDING),
    ]


def test_timeline_of_rejected_request_skips_later_levels():
    w = build_world()
    req = _submit_leave(w)
    w.workflow.reject(req.request_id, 42, "No", now=NOW)

    steps = w.workflow.timeline(req.request_id)

    assert [s.status for s in steps] == [StepStatus.REJECTED, StepStatus.SKIPPED]


def test_get_returns_details():
    w = build_world()
    req = _submit_leave(w)

    loaded = w.workflow.get(req.request_id)

    assert loaded == req
    assert loaded.details.leave_reason == "Family visit"


def test_leave_cannot_start_in_the_past():
    w = build_world()

    with pytest.raises(ValidationError):
        _submit_leave(w, payload={"leave_from_date": "2025-02-20", "leave_to_date": "2025-03-03"})


def test_leave_longer_than_balance_is_refused():
    employees = [e if e.employee_no != 5 else make_employee(5, balance="2") for e in standard_employees()]
    w = build_world(employees=employees)

    with pytest.raises(InsufficientBalanceError):
        _submit_leave(w)


def test_execute_is_refused_for_types_without_execution_step():
    w = build_world()
    req = _submit_leave(w)

    with pytest.raises(InvalidStateError):
        w.workflow.execute(req.request_id, 1, now=NOW)


def test_handler_for_reports_execution_roles():
    w = build_world()

    assert w.workflow.handler_for("PROJ_TRANSFER").execution_roles == {Role.ADMIN, Role.HR_MANAGER}
    assert not w.workflow.handler_for("VAC").executable


def test_participants_and_oversight_roles_can_view():
    w = build_world()
    req = _submit_leave(w)

    for viewer in (5, 42, 1, 2, 3, 4, 21):
        assert w.workflow.get(req.request_id, viewer_id=viewer).request_id == req.request_id

    with pytest.raises(AuthorizationError):
        w.workflow.get(req.request_id, viewer_id=99)
    with pytest.raises(AuthorizationError):
        w.workflow.timeline(req.request_id, viewer_id=99)


def test_past_approver_keeps_read_access():
    employees = [replace(e, role=Role.EMPLOYEE) if e.employee_no == 42 else e for e in standard_employees()]
    w = build_world(employees=employees)
    req = _submit_leave(w)
    w.workflow.approve(req.request_id, 42, now=NOW)

    steps = w.workflow.timeline(req.request_id, viewer_id=42)

    assert steps[0].status == StepStatus.COMPLETED
    assert w.workflow.get(req.request_id, viewer_id=42).next_approval == 2


def test_requester_filing_for_someone_else_can_view():
    w = build_world()
    req = w.workflow.submit("VAC", {**LEAVE, "employee_no": 5}, 2, now=NOW)

    assert w.workflow.get(req.request_id, viewer_id=2).requester_id == 2
    assert w.workflow.get(req.request_id, viewer_id=5).employee_no == 5
