"""HR approval workflow package.

Feature modules (employees, approvals, workflow, leaves, loans, ...) each carry
their own model / repository / MySQL repository layers; request types plug into
the generic workflow through a `RequestHandler`.
"""
