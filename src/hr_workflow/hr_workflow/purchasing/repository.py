from __future__ import annotations

from typing import Optional, Protocol

from .model import PurchaseOrder


class PurchaseOrderRepository(Protocol):
    def create(self, order: PurchaseOrder) -> PurchaseOrder:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[PurchaseOrder]:
        raise NotImplementedError
