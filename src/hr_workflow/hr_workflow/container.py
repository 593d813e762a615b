from __future__ import annotations

from dataclasses import dataclass

from .approvals.mysql_chain_repository import MySQLApprovalChainRepository
from .approvals.resolver import ApproverResolver
from .attendance.handler import ManualAttendanceHandler
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLManualAttendanceRepository
from .compensation.handler import AllowanceHandler, DeductionHandler
from .compensation.mysql_compensation_repository import MySQLCompensationRepository
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.mysql_org_repository import MySQLOrganizationRepository
from .employees.salary_service import SalaryRaiseService
from .employees.service import AuthService
from .leaves.calendar import LeaveCalendar
from .leaves.handler import LeaveRequestHandler
from .leaves.mysql_leave_repository import MySQLHolidayRepository, MySQLLeaveRepository
from .leaves.service import LeaveService
from .loans.handler import LoanPostponementHandler, LoanRequestHandler
from .loans.mysql_loan_repository import MySQLLoanRepository
from .loans.service import LoanService
from .payments.handler import ProjectPaymentHandler
from .payments.mysql_payment_repository import MySQLPaymentRequestRepository
from .purchasing.handler import PurchaseOrderHandler
from .purchasing.mysql_purchase_order_repository import MySQLPurchaseOrderRepository
from .transfers.handler import ProjectTransferHandler
from .transfers.mysql_transfer_repository import MySQLTransferRepository
from .workflow.factory import RequestHandlerFactory
from .workflow.mysql_request_repository import MySQLRequestRepository, MySQLSideEffectLedger
from .workflow.query import RequestQueryService
from .workflow.service import WorkflowService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    org_repo: MySQLOrganizationRepository
    requests_repo: MySQLRequestRepository

    handler_factory: RequestHandlerFactory
    resolver: ApproverResolver

    auth_service: AuthService
    salary_raise_service: SalaryRaiseService
    workflow_service: WorkflowService
    request_query_service: RequestQueryService
    leave_service: LeaveService
    loan_service: LoanService


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    employees_repo = MySQLEmployeeRepository(conn)
    org_repo = MySQLOrganizationRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    ledger = MySQLSideEffectLedger(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    loans_repo = MySQLLoanRepository(conn)
    calendar = LeaveCalendar(MySQLHolidayRepository(conn))

    resolver = ApproverResolver(MySQLApprovalChainRepository(conn), org_repo)
    handler_factory = RequestHandlerFactory(
        [
            LeaveRequestHandler(leaves_repo, employees_repo, calendar),
            LoanRequestHandler(loans_repo),
            LoanPostponementHandler(loans_repo),
            ProjectTransferHandler(MySQLTransferRepository(conn), employees_repo, org_repo),
            ProjectPaymentHandler(MySQLPaymentRequestRepository(conn), org_repo),
            AllowanceHandler(MySQLCompensationRepository(conn)),
            DeductionHandler(MySQLCompensationRepository(conn)),
            ManualAttendanceHandler(MySQLManualAttendanceRepository(conn), MySQLAttendanceRepository(conn)),
            PurchaseOrderHandler(MySQLPurchaseOrderRepository(conn), org_repo),
        ]
    )

    auth_service = AuthService(employees_repo)
    salary_raise_service = SalaryRaiseService(employees_repo, tx=conn)
    workflow_service = WorkflowService(
        requests_repo,
        employees_repo,
        resolver,
        ledger,
        handler_factory,
        tx=conn,
    )
    request_query_service = RequestQueryService(requests_repo)
    leave_service = LeaveService(employees_repo, calendar, ledger, tx=conn)
    loan_service = LoanService(loans_repo, tx=conn)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        org_repo=org_repo,
        requests_repo=requests_repo,
        handler_factory=handler_factory,
        resolver=resolver,
        auth_service=auth_service,
        salary_raise_service=salary_raise_service,
        workflow_service=workflow_service,
        request_query_service=request_query_service,
        leave_service=leave_service,
        loan_service=loan_service,
    )
