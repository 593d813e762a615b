from __future__ import annotations

from typing import Optional, Protocol

from .model import CompensationEntry


class CompensationRepository(Protocol):
    def create(self, entry: CompensationEntry) -> CompensationEntry:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[CompensationEntry]:
        raise NotImplementedError
