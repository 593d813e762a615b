"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 200
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200

# Largest storable amounts: DECIMAL(12,2) for salaries, loans and monthly entries,
# DECIMAL(14,2) for project-level amounts
MAX_AMOUNT = Decimal("9999999999.99")
MAX_PROJECT_AMOUNT = Decimal("999999999999.99")

# Salary raises
MAX_RAISE_PERCENTAGE = Decimal("1000")

# Loans
MIN_LOAN_INSTALLMENTS = 3
MAX_LOAN_INSTALLMENTS = 60
MAX_LOAN_SALARY_MONTHS = 12

# Leaves: Friday and Saturday (date.weekday() numbering)
WEEKEND_DAYS = frozenset({4, 5})
ANNUAL_LEAVE_ACCRUAL_DAYS = 30

# Monthly allowance / deduction type code ranges (inclusive)
ALLOWANCE_TYPE_CODES = (10, 19)
DEDUCTION_TYPE_CODES = (20, 29)
