from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from src.hr_workflow.hr_workflow.core.enums import RequestStatus
from src.hr_workflow.hr_workflow.core.exceptions import NotFoundError, ValidationError
from tests.fakes import build_world

NOW = datetime(2025, 3, 1, 9, 0, 0)


def test_purchase_order_defaults_to_requesters_project():
    w = build_world()

    req = w.workflow.submit("PURCHASE_ORDER", {"supplier_code": 501, "order_amount": "1200"}, 5, now=NOW)

    assert req.details.project_code == 100
    assert req.details.order_amount == Decimal("1200.00")
    assert req.next_approval == 21

    approvers = []
    while req.status == RequestStatus.PENDING:
        approvers.append(req.next_approval)
        req = w.workflow.approve(req.request_id, req.next_approval, now=NOW)
    assert approvers == [21, 3, 4]


def test_purchase_order_validation():
    w = build_world()

    with pytest.raises(ValidationError):
        w.workflow.submit("PURCHASE_ORDER", {"order_amount": "1200"}, 5, now=NOW)
    with pytest.raises(NotFoundError):
        w.workflow.submit("PURCHASE_ORDER", {"supplier_code": 501, "order_amount": "1", "project_code": 999}, 5, now=NOW)
