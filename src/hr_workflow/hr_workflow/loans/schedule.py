from __future__ import annotations

from datetime import date
from decimal import Decimal

from ..common.datetime_utils import add_months
from ..common.money import split_evenly
from .model import ScheduledInstallment


def build_schedule(amount: Decimal, count: int, first_due_date: date) -> list[ScheduledInstallment]:
    """Monthly installments from `first_due_date`; the last one absorbs the rounding remainder."""
    amounts = split_evenly(amount, count)
    return [
        ScheduledInstallment(
            installment_no=n,
            # Offsets are taken from the first date so a 31st never drifts to the 28th.
            due_date=add_months(first_due_date, n - 1),
            installment_amount=amounts[n - 1],
        )
        for n in range(1, count + 1)
    ]
