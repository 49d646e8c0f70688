"""
Orders component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import (
    DeliveryAddress,
    DeliveryMethod,
    Order,
    OrderHistory,
    OrderStatus,
    PaymentMethod,
)


class OrderRepoPort(Protocol):
    """Repository interface for orders, their items and status history."""

    def create(self, order: Order) -> Order:
        """Insert order, items and history in one transaction; returns it with ids."""
        ...

    def get_by_id(self, order_id: int) -> Order | None:
        """Order with items and history."""
        ...

    def get_by_number(self, order_number: str) -> Order | None: ...

    def list_by_user(self, user_id: int) -> list[Order]:
        """Newest first."""
        ...

    def search(
        self, status_id: int | None, query: str | None, offset: int, limit: int
    ) -> tuple[list[Order], int]:
        """Newest first; query matches order number or customer email."""
        ...

    def list_by_statuses(self, status_ids: list[int]) -> list[Order]: ...

    def list_all(self) -> list[Order]: ...

    def update_status(self, order_id: int, status_id: int, updated_at: datetime) -> bool: ...

    def add_history(self, entry: OrderHistory) -> OrderHistory: ...


class ReferenceRepoPort(Protocol):
    """Order statuses, delivery methods and payment methods."""

    def list_statuses(self) -> list[OrderStatus]: ...

    def get_status(self, status_id: int) -> OrderStatus | None: ...

    def list_delivery_methods(self, active_only: bool = True) -> list[DeliveryMethod]: ...

    def get_delivery_method(self, method_id: int) -> DeliveryMethod | None: ...

    def save_delivery_method(self, method: DeliveryMethod) -> DeliveryMethod: ...

    def delete_delivery_method(self, method_id: int) -> bool: ...

    def list_payment_methods(self, active_only: bool = True) -> list[PaymentMethod]: ...

    def get_payment_method(self, method_id: int) -> PaymentMethod | None: ...


class AddressRepoPort(Protocol):
    def list_by_user(self, user_id: int) -> list[DeliveryAddress]:
        """Default first, then oldest first."""
        ...

    def get(self, address_id: int) -> DeliveryAddress | None: ...

    def save(self, address: DeliveryAddress) -> DeliveryAddress: ...

    def delete(self, address_id: int) -> bool: ...

    def clear_default(self, user_id: int) -> None:
        """Unset is_default on every address of the user."""
        ...
