"""In-memory repositories shared by the service tests."""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from src.hr_workflow.hr_workflow.approvals.model import ApprovalLevel
from src.hr_workflow.hr_workflow.approvals.resolver import ApproverResolver
from src.hr_workflow.hr_workflow.attendance.handler import ManualAttendanceHandler
from src.hr_workflow.hr_workflow.attendance.model import AttendanceRecord
from src.hr_workflow.hr_workflow.compensation.handler import AllowanceHandler, DeductionHandler
from src.hr_workflow.hr_workflow.core.enums import InstallmentStatus, RequestStatus, Role, SystemRole
from src.hr_workflow.hr_workflow.employees.model import Employee
from src.hr_workflow.hr_workflow.employees.org_model import Department, Project
from src.hr_workflow.hr_workflow.employees.salary_service import SalaryRaiseService
from src.hr_workflow.hr_workflow.leaves.calendar import LeaveCalendar
from src.hr_workflow.hr_workflow.leaves.handler import LeaveRequestHandler
from src.hr_workflow.hr_workflow.leaves.service import LeaveService
from src.hr_workflow.hr_workflow.loans.handler import LoanPostponementHandler, LoanRequestHandler
from src.hr_workflow.hr_workflow.loans.model import LoanInstallment
from src.hr_workflow.hr_workflow.loans.service import LoanService
from src.hr_workflow.hr_workflow.payments.handler import ProjectPaymentHandler
from src.hr_workflow.hr_workflow.purchasing.handler import PurchaseOrderHandler
from src.hr_workflow.hr_workflow.transfers.handler import ProjectTransferHandler
from src.hr_workflow.hr_workflow.workflow.factory import RequestHandlerFactory
from src.hr_workflow.hr_workflow.workflow.model import ApprovalRequest
from src.hr_workflow.hr_workflow.workflow.query import RequestQueryService
from src.hr_workflow.hr_workflow.workflow.service import WorkflowService

OPEN_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)


class FakeTx:
    """Snapshots every store on entry and restores it when the block raises.

    Attributes named `_ref_*` point at other stores and are left alone.
    """

    def __init__(self, *stores):
        self._stores = stores
        self.commits = 0
        self.rollbacks = 0

    @staticmethod
    def _snapshot(store) -> dict:
        return {k: copy.deepcopy(v) for k, v in vars(store).items() if not k.startswith("_ref")}

    @contextmanager
    def transaction(self):
        snapshots = [self._snapshot(s) for s in self._stores]
        try:
            yield self
        except Exception:
            for store, snap in zip(self._stores, snapshots):
                vars(store).update(snap)
            self.rollbacks += 1
            raise
        self.commits += 1


class FakeEmployees:
    def __init__(self, employees):
        self.rows = {e.employee_no: e for e in employees}
        self.locked = []
        self.salary_raises = []

    def get_by_id(self, employee_no, *, for_update=False):
        if for_update:
            self.locked.append(int(employee_no))
        return self.rows.get(int(employee_no))

    def get_by_username(self, username):
        return next((e for e in self.rows.values() if e.username == username), None)

    def adjust_leave_balance(self, employee_no, delta):
        e = self.rows.get(int(employee_no))
        if not e or e.leave_balance_days + delta < 0:
            return False
        self.rows[e.employee_no] = replace(e, leave_balance_days=e.leave_balance_days + delta)
        return True

    def set_project(self, employee_no, project_code):
        e = self.rows.get(int(employee_no))
        if not e:
            return False
        self.rows[e.employee_no] = replace(e, project_code=int(project_code))
        return True

    def set_monthly_salary(self, employee_no, salary):
        e = self.rows.get(int(employee_no))
        if not e:
            return False
        self.rows[e.employee_no] = replace(e, monthly_salary=salary)
        return True

    def record_salary_raise(self, salary_raise):
        self.salary_raises.append(salary_raise)
        return len(self.salary_raises)

    def add_leave_to_active(self, days):
        count = 0
        for no, e in list(self.rows.items()):
            if e.is_active:
                self.rows[no] = replace(e, leave_balance_days=e.leave_balance_days + days)
                count += 1
        return count


class FakeOrg:
    def __init__(self, departments=(), projects=(), seats=None):
        self.departments = {d.department_code: d for d in departments}
        self.projects = {p.project_code: p for p in projects}
        self.seats = dict(seats or {})
        self.locks = []

    def get_department(self, department_code):
        return self.departments.get(int(department_code))

    def get_project(self, project_code, *, for_update=False):
        if for_update:
            self.locks.append(int(project_code))
        return self.projects.get(int(project_code))

    def get_system_role_holder(self, role):
        return self.seats.get(role)


class FakeChains:
    def __init__(self, levels=()):
        self.levels = list(levels)

    def find_levels(self, *, request_type, department_code=None, project_code=None):
        return [
            lv
            for lv in self.levels
            if lv.request_type == request_type
            and lv.department_code == department_code
            and lv.project_code == project_code
        ]


class FakeRequests:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def create(
        self,
        *,
        request_type,
        requester_id,
        employee_no,
        department_code,
        project_code,
        next_app_level,
        next_approval,
        effective_date,
        request_date,
    ):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = ApprovalRequest(
            request_id=rid,
            request_type=request_type,
            requester_id=int(requester_id),
            employee_no=int(employee_no),
            status=RequestStatus.PENDING,
            request_date=request_date,
            department_code=department_code,
            project_code=project_code,
            next_app_level=next_app_level,
            next_approval=next_approval,
            effective_date=effective_date,
        )
        return rid

    def get(self, request_id, *, for_update=False):
        return self.rows.get(int(request_id))

    def update_state(self, request, *, expected_version):
        current = self.rows.get(request.request_id)
        if not current or current.version != expected_version:
            return False
        self.rows[request.request_id] = replace(request, version=expected_version + 1, details=None)
        return True

    def status_of(self, request_id):
        row = self.rows.get(int(request_id))
        return row.status if row else None

    def list_pending_for_approver(self, *, approver_id, request_type=None, limit=200):
        rows = [
            r
            for r in self.rows.values()
            if r.status == RequestStatus.PENDING
            and r.next_approval == int(approver_id)
            and (request_type is None or r.request_type == request_type)
        ]
        return sorted(rows, key=lambda r: (r.request_date, r.request_id))[:limit]

    def list_for_employee(self, *, employee_no, request_type=None, limit=200):
        rows = [
            r
            for r in self.rows.values()
            if r.employee_no == int(employee_no) and (request_type is None or r.request_type == request_type)
        ]
        return sorted(rows, key=lambda r: (r.request_date, r.request_id), reverse=True)[:limit]

    def search(self, filters, page):
        rows = [
            r
            for r in self.rows.values()
            if (filters.status is None or r.status == filters.status)
            and (filters.request_type is None or r.request_type == filters.request_type)
            and (filters.employee_no is None or r.employee_no == filters.employee_no)
            and (filters.date_from is None or r.request_date.date() >= filters.date_from)
            and (filters.date_to is None or r.request_date.date() <= filters.date_to)
        ]

        def key(r):
            value = getattr(r, page.sort_by)
            return (value is None, value, r.request_id)

        rows.sort(key=key, reverse=page.direction == "DESC")
        return rows[page.offset : page.offset + page.size], len(rows)


class FakeLedger:
    def __init__(self):
        self.claims = set()

    def claim(self, *, subject, transition, at):
        if (subject, transition) in self.claims:
            return False
        self.claims.add((subject, transition))
        return True


class FakeHolidays:
    def __init__(self, holidays=()):
        self.holidays = list(holidays)

    def list_between(self, start_date, end_date):
        return [h for h in self.holidays if start_date <= h.holiday_date <= end_date]


class FakeLeaves:
    def __init__(self, requests):
        self.rows = {}
        self._ref_requests = requests

    def create(self, details):
        self.rows[details.request_id] = details
        return details

    def get(self, request_id):
        return self.rows.get(int(request_id))

    def find_overlapping(self, *, employee_no, start_date, end_date):
        return [
            d
            for d in self.rows.values()
            if d.employee_no == employee_no
            and self._ref_requests.status_of(d.request_id) in OPEN_STATUSES
            and d.leave_from_date <= end_date
            and d.leave_to_date >= start_date
        ]


class FakeLoans:
    def __init__(self, requests):
        self.loans = {}
        self.installments = {}
        self.postponements = {}
        self._next_installment_id = 1
        self._ref_requests = requests

    def create_loan(self, details):
        self.loans[details.request_id] = details
        return details

    def get_loan(self, request_id, *, for_update=False):
        return self.loans.get(int(request_id))

    def find_open_loans(self, *, employee_no):
        result = []
        for loan in self.loans.values():
            if loan.employee_no != employee_no:
                continue
            status = self._ref_requests.status_of(loan.request_id)
            if status == RequestStatus.PENDING or (
                status == RequestStatus.APPROVED and loan.is_active and loan.remaining_balance > 0
            ):
                result.append(loan)
        return result

    def update_loan_balance(self, *, request_id, remaining_balance, is_active):
        loan = self.loans.get(int(request_id))
        if not loan:
            return False
        self.loans[loan.request_id] = replace(loan, remaining_balance=remaining_balance, is_active=is_active)
        return True

    def outstanding_balance(self, *, employee_no):
        return sum(
            (l.remaining_balance for l in self.loans.values() if l.employee_no == employee_no and l.is_active),
            Decimal("0"),
        )

    def add_installments(self, *, request_id, schedule):
        for item in schedule:
            iid = self._next_installment_id
            self._next_installment_id += 1
            self.installments[iid] = LoanInstallment(
                installment_id=iid,
                request_id=int(request_id),
                installment_no=item.installment_no,
                due_date=item.due_date,
                installment_amount=item.installment_amount,
            )
        return self.list_installments(request_id=request_id)

    def list_installments(self, *, request_id):
        rows = [i for i in self.installments.values() if i.request_id == int(request_id)]
        return sorted(rows, key=lambda i: i.installment_no)

    def get_installment(self, installment_id, *, for_update=False):
        return self.installments.get(int(installment_id))

    def delete_installments(self, *, request_id):
        doomed = [iid for iid, i in self.installments.items() if i.request_id == int(request_id)]
        for iid in doomed:
            del self.installments[iid]
        return len(doomed)

    def reschedule_installment(self, *, installment_id, new_due_date):
        inst = self.installments.get(int(installment_id))
        if not inst or inst.is_paid:
            return False
        self.installments[inst.installment_id] = replace(
            inst, due_date=new_due_date, payment_status=InstallmentStatus.POSTPONED
        )
        return True

    def mark_installment_paid(self, *, installment_id, paid_date):
        inst = self.installments.get(int(installment_id))
        if not inst or inst.is_paid:
            return False
        self.installments[inst.installment_id] = replace(
            inst, payment_status=InstallmentStatus.PAID, paid_date=paid_date
        )
        return True

    def create_postponement(self, details):
        self.postponements[details.request_id] = details
        return details

    def get_postponement(self, request_id):
        return self.postponements.get(int(request_id))

    def has_pending_postponement(self, *, installment_id):
        return any(
            p.installment_id == int(installment_id)
            and self._ref_requests.status_of(p.request_id) == RequestStatus.PENDING
            for p in self.postponements.values()
        )


class FakeTransfers:
    def __init__(self, requests):
        self.rows = {}
        self._ref_requests = requests

    def create(self, details):
        self.rows[details.request_id] = details
        return details

    def get(self, request_id):
        return self.rows.get(int(request_id))

    def has_pending_for_employee(self, *, employee_no):
        return any(
            t.employee_no == employee_no and self._ref_requests.status_of(t.request_id) == RequestStatus.PENDING
            for t in self.rows.values()
        )

    def mark_executed(self, *, request_id, executed_by, executed_date):
        row = self.rows.get(int(request_id))
        if not row or row.is_executed:
            return False
        self.rows[row.request_id] = replace(row, is_executed=True, executed_by=executed_by, executed_date=executed_date)
        return True


class FakePayments:
    def __init__(self, requests):
        self.rows = {}
        self._ref_requests = requests

    def create(self, details):
        self.rows[details.request_id] = details
        return details

    def get(self, request_id):
        return self.rows.get(int(request_id))

    def committed_total(self, *, project_code):
        return sum(
            (
                p.payment_amount
                for p in self.rows.values()
                if p.project_code == project_code and self._ref_requests.status_of(p.request_id) in OPEN_STATUSES
            ),
            Decimal("0"),
        )

    def mark_processed(self, *, request_id, processed_by, processed_date):
        row = self.rows.get(int(request_id))
        if not row or row.is_processed:
            return False
        self.rows[row.request_id] = replace(
            row, is_processed=True, processed_by=processed_by, processed_date=processed_date
        )
        return True


class FakeDetailStore:
    """Plain request_id -> details store (compensation entries, purchase orders)."""

    def __init__(self):
        self.rows = {}

    def create(self, details):
        self.rows[details.request_id] = details
        return details

    def get(self, request_id):
        return self.rows.get(int(request_id))


class FakeManualAttendance(FakeDetailStore):
    def __init__(self, requests):
        super().__init__()
        self._ref_requests = requests

    def has_open_request(self, *, employee_no, attendance_date):
        return any(
            d.employee_no == employee_no
            and d.attendance_date == attendance_date
            and self._ref_requests.status_of(d.request_id) == RequestStatus.PENDING
            for d in self.rows.values()
        )


class FakeAttendance:
    def __init__(self):
        self.records = {}

    def get_for_employee_and_date(self, employee_no, attendance_date):
        return self.records.get((int(employee_no), attendance_date))

    def create_record(self, *, employee_no, attendance_date, check_in_time, check_out_time, status, note=None):
        attendance_id = len(self.records) + 1
        self.records[(int(employee_no), attendance_date)] = AttendanceRecord(
            attendance_id=attendance_id,
            employee_no=int(employee_no),
            attendance_date=attendance_date,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            status=status,
            note=note,
        )
        return attendance_id


# -------- standard organisation --------

def make_employee(
    employee_no,
    name=None,
    *,
    role=Role.EMPLOYEE,
    department_code=20,
    project_code=100,
    salary="8000",
    balance="30",
    status="ACTIVE",
    username=None,
    password_hash="",
):
    return Employee(
        employee_no=employee_no,
        employee_name=name or f"Employee {employee_no}",
        username=username or f"user{employee_no}",
        password_hash=password_hash,
        role=role,
        department_code=department_code,
        project_code=project_code,
        monthly_salary=Decimal(salary),
        leave_balance_days=Decimal(balance),
        employment_status=status,
    )


def standard_employees():
    return [
        make_employee(1, "Admin", role=Role.ADMIN, department_code=10, project_code=None),
        make_employee(2, "HR Manager", role=Role.HR_MANAGER, department_code=10, project_code=None),
        make_employee(3, "Finance Manager", role=Role.FINANCE_MANAGER, department_code=10, project_code=None),
        make_employee(4, "General Manager", role=Role.GENERAL_MANAGER, department_code=10, project_code=200),
        make_employee(5, "Requester", balance="10"),
        make_employee(21, "PM Tower", role=Role.MANAGER),
        make_employee(22, "PM Port", role=Role.MANAGER, project_code=200),
        make_employee(42, "Department Manager", role=Role.MANAGER),
        make_employee(99, "Colleague"),
        make_employee(77, "Former", status="TERMINATED"),
    ]


def chain(request_type, *functions, department_code=None, project_code=None):
    """Levels 1..n for `functions`; the last one closes the chain."""
    return [
        ApprovalLevel(
            request_type=request_type,
            level_no=n,
            function_call=fn,
            close_level=n == len(functions),
            department_code=department_code,
            project_code=project_code,
        )
        for n, fn in enumerate(functions, start=1)
    ]


def standard_chains():
    return (
        chain("VAC", "GetDirectManager", "GetHRManager")
        + chain("LOAN", "GetDirectManager", "GetHRManager", "GetFinManager", "GetGeneralManager")
        + chain("POSTLOAN", "GetHRManager", "GetFinManager")
        + chain("PROJ_TRANSFER", "GetProjectManager", "GetProjectManager", "GetHRManager")
        + chain("PROJ_PAYMENT", "GetProjectManager", "GetRegionalManager", "GetFinManager")
        + chain("ALLOW", "GetDirectManager", "GetHRManager")
        + chain("DEDUCT", "GetDirectManager", "GetHRManager")
        + chain("MANUAL_ATTENDANCE", "GetDirectManager")
        + chain("PURCHASE_ORDER", "GetProjectManager", "GetFinManager", "GetGeneralManager")
    )


def standard_org():
    return FakeOrg(
        departments=[
            Department(department_code=10, department_name="Administration", manager_no=1),
            Department(department_code=20, department_name="Engineering", manager_no=42),
        ],
        projects=[
            Project(project_code=100, project_name="Tower", manager_no=21, regional_manager_no=4, total_amount=Decimal("500000")),
            Project(project_code=200, project_name="Port", manager_no=22, regional_manager_no=4, total_amount=Decimal("1000")),
        ],
        seats={SystemRole.HR_MANAGER: 2, SystemRole.FINANCE_MANAGER: 3, SystemRole.GENERAL_MANAGER: 4},
    )


def build_world(*, employees=None, chains=None, org=None, holidays=()):
    requests = FakeRequests()
    w = SimpleNamespace(
        employees=FakeEmployees(employees if employees is not None else standard_employees()),
        org=org or standard_org(),
        chains=FakeChains(chains if chains is not None else standard_chains()),
        requests=requests,
        ledger=FakeLedger(),
        holidays=FakeHolidays(holidays),
        leaves=FakeLeaves(requests),
        loans=FakeLoans(requests),
        transfers=FakeTransfers(requests),
        payments=FakePayments(requests),
        allowances=FakeDetailStore(),
        orders=FakeDetailStore(),
        manual=FakeManualAttendance(requests),
        attendance=FakeAttendance(),
    )
    w.tx = FakeTx(
        w.employees, w.org, w.requests, w.ledger, w.leaves, w.loans, w.transfers,
        w.payments, w.allowances, w.orders, w.manual, w.attendance,
    )
    w.calendar = LeaveCalendar(w.holidays)
    w.resolver = ApproverResolver(w.chains, w.org)
    w.factory = RequestHandlerFactory(
        [
            LeaveRequestHandler(w.leaves, w.employees, w.calendar),
            LoanRequestHandler(w.loans),
            LoanPostponementHandler(w.loans),
            ProjectTransferHandler(w.transfers, w.employees, w.org),
            ProjectPaymentHandler(w.payments, w.org),
            AllowanceHandler(w.allowances),
            DeductionHandler(w.allowances),
            ManualAttendanceHandler(w.manual, w.attendance),
            PurchaseOrderHandler(w.orders, w.org),
        ]
    )
    w.workflow = WorkflowService(w.requests, w.employees, w.resolver, w.ledger, w.factory, tx=w.tx)
    w.queries = RequestQueryService(w.requests)
    w.leave_service = LeaveService(w.employees, w.calendar, w.ledger, tx=w.tx)
    w.loan_service = LoanService(w.loans, tx=w.tx)
    w.salary_service = SalaryRaiseService(w.employees, tx=w.tx)
    return w


def approve_all(w, request, *, now: datetime):
    """Approve level after level with whoever is the current approver."""
    while request.status == RequestStatus.PENDING:
        request = w.workflow.approve(request.request_id, request.next_approval, expected_version=request.version, now=now)
    return request
