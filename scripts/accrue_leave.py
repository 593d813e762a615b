"""Credit the yearly leave allowance to every active employee.

Usage: python scripts/accrue_leave.py [YEAR] [DAYS]

Safe to run more than once: a year that was already accrued is skipped.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from decimal import Decimal
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_workflow.hr_workflow.common.datetime_utils import now_local
from src.hr_workflow.hr_workflow.common.logging_setup import configure_logging
from src.hr_workflow.hr_workflow.container import build_container
from src.hr_workflow.hr_workflow.core.constants import ANNUAL_LEAVE_ACCRUAL_DAYS

logger = logging.getLogger("scripts.accrue_leave")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("year", nargs="?", type=int, default=now_local().year)
    parser.add_argument("days", nargs="?", type=Decimal, default=Decimal(ANNUAL_LEAVE_ACCRUAL_DAYS))
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG))

    credited = container.leave_service.accrue_annual(args.year, args.days)
    if credited:
        logger.info("Accrued %s days for %s employees (%s)", args.days, credited, args.year)
    else:
        logger.info("Leave for %s was already accrued; nothing to do", args.year)


if __name__ == "__main__":
    main()
