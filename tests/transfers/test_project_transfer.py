from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_workflow.hr_workflow.core.enums import RequestStatus, StepStatus
from src.hr_workflow.hr_workflow.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from tests.fakes import build_world

NOW = datetime(2025, 3, 1, 9, 0, 0)
TRANSFER = {"to_project_code": 200, "transfer_date": "2025-04-01", "transfer_reason": "Port needs a surveyor"}


def _submit(w, payload=None):
    return w.workflow.submit("PROJ_TRANSFER", payload or TRANSFER, 5, now=NOW)


def test_levels_after_the_first_are_seated_from_the_target_project():
    w = build_world()
    req = _submit(w)
    assert req.next_approval == 21
    assert req.project_code == 100

    req = w.workflow.approve(req.request_id, 21, now=NOW)
    assert req.next_approval == 22

    req = w.workflow.approve(req.request_id, 22, now=NOW)
    assert req.next_approval == 2

    steps = w.workflow.timeline(req.request_id)
    assert [(s.approver_no, s.status) for s in steps] == [
        (21, StepStatus.COMPLETED),
        (22, StepStatus.COMPLETED),
        (2, StepStatus.PENDING),
    ]


def test_approval_alone_does_not_move_the_employee():
    w = build_world()
    req = _submit(w)
    for approver in (21, 22, 2):
        req = w.workflow.approve(req.request_id, approver, now=NOW)

    assert req.status == RequestStatus.APPROVED
    assert w.employees.rows[5].project_code == 100
    assert req.details.is_executed is False


def test_execute_moves_the_employee_exactly_once():
    w = build_world()
    req = _submit(w)
    for approver in (21, 22, 2):
        req = w.workflow.approve(req.request_id, approver, now=NOW)

    executed = w.workflow.execute(req.request_id, 2, now=NOW)

    assert executed.details.is_executed is True
    assert executed.details.executed_by == 2
    assert w.employees.rows[5].project_code == 200
    assert (f"request:{req.request_id}", "EXECUTE") in w.ledger.claims

    with pytest.raises(InvalidStateError):
        w.workflow.execute(req.request_id, 1, now=NOW)
    with pytest.raises(InvalidStateError):
        w.workflow.cancel(req.request_id, 5, "Changed my mind", now=NOW)


def test_execute_requires_execution_role():
    w = build_world()
    req = _submit(w)
    for approver in (21, 22, 2):
        req = w.workflow.approve(req.request_id, approver, now=NOW)

    with pytest.raises(AuthorizationError):
        w.workflow.execute(req.request_id, 5, now=NOW)
    assert w.employees.rows[5].project_code == 100


def test_execute_requires_final_approval():
    w = build_world()
    req = _submit(w)

    with pytest.raises(InvalidStateError):
        w.workflow.execute(req.request_id, 1, now=NOW)


def test_approved_transfer_can_be_cancelled_before_transfer_date():
    w = build_world()
    req = _submit(w)
    for approver in (21, 22, 2):
        req = w.workflow.approve(req.request_id, approver, now=NOW)

    req = w.workflow.cancel(req.request_id, 5, "Staying", now=NOW)

    assert req.status == RequestStatus.CANCELLED
    assert w.employees.rows[5].project_code == 100


@pytest.mark.parametrize(
    "payload",
    [
        {"to_project_code": 100},
        {"to_project_code": 200, "from_project_code": 200},
        {"to_project_code": 200, "transfer_date": "2025-02-01"},
        {"to_project_code": "abc"},
    ],
)
def test_invalid_transfers_are_refused(payload):
    w = build_world()

    with pytest.raises(ValidationError):
        _submit(w, payload)


def test_transfer_to_unknown_project_is_refused():
    w = build_world()

    with pytest.raises(NotFoundError):
        _submit(w, {"to_project_code": 999})


def test_second_pending_transfer_is_refused():
    w = build_world()
    _submit(w)

    with pytest.raises(ValidationError):
        _submit(w)
