from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ApprovalLevel


class ApprovalChainRepository(Protocol):
    """Read-only access to the approval chain configuration."""

    def find_levels(
        self,
        *,
        request_type: str,
        department_code: Optional[int] = None,
        project_code: Optional[int] = None,
    ) -> Sequence[ApprovalLevel]:
        """Active levels configured for exactly this scope, ordered by level_no.

        Both codes None selects the global (unscoped) chain.
        """

        raise NotImplementedError
