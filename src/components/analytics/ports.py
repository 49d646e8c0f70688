"""
Analytics component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Order, OrderStatus

from .models import ClientSummary


class AnalyticsOrderRepoPort(Protocol):
    def list_since(self, since: datetime) -> list[Order]:
        """Orders (with items) created at or after since."""
        ...


class StatusLookupPort(Protocol):
    def list_statuses(self) -> list[OrderStatus]: ...


class ClientRepoPort(Protocol):
    def search_clients(
        self,
        query: str | None,
        offset: int,
        limit: int,
        unpaid_statuses: list[int],
    ) -> tuple[list[ClientSummary], int]:
        """
        Clients (role client) matching query on email or name, newest first.

        total_spent excludes orders whose status is in unpaid_statuses.
        """
        ...
