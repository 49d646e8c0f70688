"""
Analytics component - Manager dashboard figures and the client list.

Shell Layer - loads orders for the period and delegates the
arithmetic to _impl.
"""

from __future__ import annotations

import logging
import math

from src.core.ports.time import TimePort
from src.rules.models import Rules

from ._impl import aggregate, period_start
from .models import ClientPage, ListClientsInput, ManagerAnalytics, ManagerAnalyticsInput
from .ports import AnalyticsOrderRepoPort, ClientRepoPort, StatusLookupPort

logger = logging.getLogger(__name__)

MAX_PERIOD_DAYS = 366


def run_manager_analytics(
    inp: ManagerAnalyticsInput,
    orders: AnalyticsOrderRepoPort,
    statuses: StatusLookupPort,
    rules: Rules,
    time: TimePort,
) -> ManagerAnalytics:
    period_days = min(max(1, inp.period_days), MAX_PERIOD_DAYS)
    now = time.now_utc()
    found = orders.list_since(period_start(now, period_days))
    result = aggregate(
        found,
        statuses.list_statuses(),
        now,
        period_days,
        rules.orders.unpaid_statuses,
        rules.analytics.top_builds_limit,
    )
    logger.debug(
        "Analytics over %d days: %d orders, revenue %.2f",
        period_days,
        result.total_orders,
        result.total_revenue,
    )
    return result


def run_list_clients(inp: ListClientsInput, repo: ClientRepoPort, rules: Rules) -> ClientPage:
    limit = max(1, min(inp.limit, 100))
    page = max(1, inp.page)
    search = inp.search.strip() if inp.search else None
    clients, total = repo.search_clients(
        search, (page - 1) * limit, limit, rules.orders.unpaid_statuses
    )
    return ClientPage(
        clients=clients,
        total_items=total,
        total_pages=max(1, math.ceil(total / limit)),
        current_page=page,
    )
