"""
Analytics component - Manager dashboard.

Order counts, revenue, top builds and a daily series over a
trailing period, plus the client list with order totals.
"""

from ._impl import aggregate, calculate_day_start, daily_series, orders_by_status, top_builds
from .component import run_list_clients, run_manager_analytics
from .models import (
    ClientPage,
    ClientSummary,
    DailyPoint,
    ListClientsInput,
    ManagerAnalytics,
    ManagerAnalyticsInput,
    StatusCount,
    TopBuild,
)
from .ports import AnalyticsOrderRepoPort, ClientRepoPort, StatusLookupPort

__all__ = [
    # Entry points
    "run_manager_analytics",
    "run_list_clients",
    # Aggregation
    "aggregate",
    "calculate_day_start",
    "daily_series",
    "orders_by_status",
    "top_builds",
    # Models
    "ClientPage",
    "ClientSummary",
    "DailyPoint",
    "ListClientsInput",
    "ManagerAnalytics",
    "ManagerAnalyticsInput",
    "StatusCount",
    "TopBuild",
    # Ports
    "AnalyticsOrderRepoPort",
    "ClientRepoPort",
    "StatusLookupPort",
]
