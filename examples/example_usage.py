"""Example: drive the workflow through the service layer (no Flask).

Controllers are thin; every rule lives in the services, so a script can submit
and approve requests directly.
"""

import importlib

from config import get_settings_module

from src.hr_workflow.hr_workflow.common.logging_setup import configure_logging
from src.hr_workflow.hr_workflow.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    configure_logging("INFO")
    container = build_container(db_config=settings.DB_CONFIG)
    workflow = container.workflow_service

    request = workflow.submit(
        "VAC",
        {"leave_from_date": "2030-03-10", "leave_to_date": "2030-03-12", "leave_reason": "Family visit"},
        requester_id=5,
    )
    for step in workflow.timeline(request.request_id):
        print(step.level_no, step.level_name, step.approver_no, step.status.value)

    request = workflow.approve(request.request_id, approver_id=request.next_approval, expected_version=request.version)
    print(request.status.name, request.next_app_level, request.next_approval)


if __name__ == "__main__":
    main()
