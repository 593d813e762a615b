from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.hr_workflow.hr_workflow.core.enums import RequestStatus, RequestType
from src.hr_workflow.hr_workflow.core.exceptions import ValidationError
from src.hr_workflow.hr_workflow.workflow.model import PageRequest, RequestFilter
from tests.fakes import build_world

NOW = datetime(2025, 3, 1, 9, 0, 0)


def _seed(w):
    """Five leave requests from different employees, one day apart."""
    ids = []
    for offset, employee_no in enumerate((5, 99, 21, 22, 42)):
        start = date(2025, 4, 6) + timedelta(weeks=offset)
        req = w.workflow.submit(
            "VAC",
            {"leave_from_date": start.isoformat(), "leave_to_date": start.isoformat()},
            employee_no,
            now=NOW + timedelta(days=offset),
        )
        ids.append(req.request_id)
    return ids


def test_pending_inbox_lists_only_current_approver_items():
    w = build_world()
    ids = _seed(w)
    w.workflow.approve(ids[0], 42, now=NOW)

    inbox_42 = w.queries.get_pending_for_approver(42)
    inbox_hr = w.queries.get_pending_for_approver(2)

    # employee 42 is their own department manager; that request waits on 42 as well
    assert [r.request_id for r in inbox_42] == ids[1:]
    assert [r.request_id for r in inbox_hr] == [ids[0]]
    assert w.queries.get_pending_for_approver(42, RequestType.LOAN) == []


def test_history_is_newest_first_and_includes_closed_requests():
    w = build_world()
    first = w.workflow.submit("VAC", {"leave_from_date": "2025-04-06", "leave_to_date": "2025-04-06"}, 5, now=NOW)
    second = w.workflow.submit(
        "VAC", {"leave_from_date": "2025-05-04", "leave_to_date": "2025-05-04"}, 5, now=NOW + timedelta(hours=1)
    )
    w.workflow.reject(first.request_id, 42, "No", now=NOW)

    history = w.queries.get_history_for_employee(5)

    assert [r.request_id for r in history] == [second.request_id, first.request_id]
    assert history[1].status == RequestStatus.REJECTED


def test_list_all_pages_and_sorts():
    w = build_world()
    ids = _seed(w)

    page1 = w.queries.list_all(RequestFilter(), PageRequest(page=1, size=2, sort_by="request_date", direction="asc"))
    page3 = w.queries.list_all(RequestFilter(), PageRequest(page=3, size=2, sort_by="request_date", direction="ASC"))

    assert [r.request_id for r in page1.items] == ids[:2]
    assert [r.request_id for r in page3.items] == ids[4:]
    assert page1.total == 5
    assert page1.pages == 3


def test_list_all_filters():
    w = build_world()
    ids = _seed(w)
    w.workflow.reject(ids[1], 42, "No", now=NOW)

    rejected = w.queries.list_all(RequestFilter(status=RequestStatus.REJECTED), PageRequest())
    by_employee = w.queries.list_all(RequestFilter(employee_no=21), PageRequest())
    by_date = w.queries.list_all(
        RequestFilter(date_from=date(2025, 3, 2), date_to=date(2025, 3, 3)),
        PageRequest(sort_by="request_id", direction="ASC"),
    )

    assert [r.request_id for r in rejected.items] == [ids[1]]
    assert [r.employee_no for r in by_employee.items] == [21]
    assert [r.request_id for r in by_date.items] == ids[1:3]


def test_list_all_refuses_unknown_sort_field():
    w = build_world()

    with pytest.raises(ValidationError):
        w.queries.list_all(RequestFilter(), PageRequest(sort_by="password_hash"))


@pytest.mark.parametrize(
    "page",
    [
        PageRequest(page=0),
        PageRequest(size=0),
        PageRequest(size=10_000),
        PageRequest(direction="sideways"),
    ],
)
def test_list_all_validates_paging(page):
    w = build_world()

    with pytest.raises(ValidationError):
        w.queries.list_all(RequestFilter(), page)


def test_list_all_validates_date_order():
    w = build_world()

    with pytest.raises(ValidationError):
        w.queries.list_all(RequestFilter(date_from=date(2025, 3, 5), date_to=date(2025, 3, 1)), PageRequest())
