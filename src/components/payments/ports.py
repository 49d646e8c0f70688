"""
Payments component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import DeliveryMethod


class DeliveryLookupPort(Protocol):
    def get_delivery_method(self, method_id: int) -> DeliveryMethod | None: ...
