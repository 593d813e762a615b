from __future__ import annotations

from flask import Flask

from ..common.http import login_required, ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/loans/<int:loan_id>/installments", methods=["GET"], endpoint="loan_installments")
    @login_required
    def loan_installments(loan_id: int):
        return ok(container.loan_service.get_installments(loan_id))

    @app.route("/api/loans/installments/<int:installment_id>/pay", methods=["POST"], endpoint="pay_installment")
    @roles_required(Role.ADMIN, Role.FINANCE_MANAGER)
    def pay_installment(installment_id: int):
        return ok(container.loan_service.pay_installment(installment_id))
