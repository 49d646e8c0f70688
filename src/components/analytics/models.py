"""
Analytics component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

# --- Inputs ---


@dataclass(frozen=True)
class ManagerAnalyticsInput:
    period_days: int = 30


@dataclass(frozen=True)
class ListClientsInput:
    search: str | None = None
    page: int = 1
    limit: int = 20


# --- Outputs ---


@dataclass(frozen=True)
class TopBuild:
    slug: str
    name: str
    quantity: int
    revenue: float


@dataclass(frozen=True)
class StatusCount:
    status_id: int
    name: str
    count: int


@dataclass(frozen=True)
class DailyPoint:
    date: date
    orders: int
    revenue: float


@dataclass
class ManagerAnalytics:
    period_days: int
    period_start: datetime
    total_orders: int = 0
    total_revenue: float = 0.0
    unique_customers: int = 0
    average_order_value: float = 0.0
    top_builds: list[TopBuild] = field(default_factory=list)
    orders_by_status: list[StatusCount] = field(default_factory=list)
    daily: list[DailyPoint] = field(default_factory=list)


@dataclass(frozen=True)
class ClientSummary:
    id: int
    email: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None
    first_name: str | None = None
    last_name: str | None = None
    order_count: int = 0
    total_spent: float = 0.0


@dataclass
class ClientPage:
    clients: list[ClientSummary]
    total_items: int
    total_pages: int
    current_page: int
