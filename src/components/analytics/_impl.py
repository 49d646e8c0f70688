"""
Analytics component - Order aggregation (Functional Core).

Buckets orders by calendar day (UTC) and rolls them up into the
manager dashboard figures. Revenue only counts orders that have
left the unpaid statuses (New, Cancelled by default).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta

from src.domain.entities import Order, OrderStatus

from .models import DailyPoint, ManagerAnalytics, StatusCount, TopBuild


def calculate_day_start(timestamp: datetime) -> datetime:
    return timestamp.replace(hour=0, minute=0, second=0, microsecond=0)


def period_start(now: datetime, period_days: int) -> datetime:
    return now - timedelta(days=period_days)


def day_range(start: datetime, end: datetime) -> list[date]:
    days = []
    current = calculate_day_start(start).date()
    last = end.date()
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def is_revenue(order: Order, unpaid_statuses: list[int]) -> bool:
    return order.status_id not in unpaid_statuses


def top_builds(orders: list[Order], unpaid_statuses: list[int], limit: int = 10) -> list[TopBuild]:
    quantity: dict[str, int] = defaultdict(int)
    revenue: dict[str, float] = defaultdict(float)
    names: dict[str, str] = {}
    for order in orders:
        if not is_revenue(order, unpaid_statuses):
            continue
        for item in order.items:
            snapshot = item.build_snapshot
            # product lines carry product_id in their snapshot
            if "product_id" in snapshot:
                continue
            slug = str(snapshot.get("slug") or f"build-{item.build_id}")
            quantity[slug] += item.quantity
            revenue[slug] += item.price
            names.setdefault(slug, str(snapshot.get("name", slug)))

    ranked = sorted(quantity.items(), key=lambda x: (-x[1], -revenue[x[0]], x[0]))
    return [
        TopBuild(slug=slug, name=names[slug], quantity=qty, revenue=round(revenue[slug], 2))
        for slug, qty in ranked[:limit]
    ]


def orders_by_status(orders: list[Order], statuses: list[OrderStatus]) -> list[StatusCount]:
    counts: dict[int, int] = defaultdict(int)
    for order in orders:
        counts[order.status_id] += 1
    names = {s.id: s.name for s in statuses}
    return [
        StatusCount(status_id=status_id, name=names.get(status_id, str(status_id)), count=count)
        for status_id, count in sorted(counts.items())
    ]


def daily_series(
    orders: list[Order], start: datetime, end: datetime, unpaid_statuses: list[int]
) -> list[DailyPoint]:
    counts: dict[date, int] = defaultdict(int)
    revenue: dict[date, float] = defaultdict(float)
    for order in orders:
        day = order.created_at.date()
        counts[day] += 1
        if is_revenue(order, unpaid_statuses):
            revenue[day] += order.total_price
    return [
        DailyPoint(date=day, orders=counts.get(day, 0), revenue=round(revenue.get(day, 0.0), 2))
        for day in day_range(start, end)
    ]


def aggregate(
    orders: list[Order],
    statuses: list[OrderStatus],
    now: datetime,
    period_days: int,
    unpaid_statuses: list[int],
    top_limit: int = 10,
) -> ManagerAnalytics:
    start = period_start(now, period_days)
    in_period = [o for o in orders if start <= o.created_at <= now]
    paid = [o for o in in_period if is_revenue(o, unpaid_statuses)]
    revenue = round(sum(o.total_price for o in paid), 2)

    return ManagerAnalytics(
        period_days=period_days,
        period_start=start,
        total_orders=len(in_period),
        total_revenue=revenue,
        unique_customers=len({o.user_id for o in in_period}),
        average_order_value=round(revenue / len(paid), 2) if paid else 0.0,
        top_builds=top_builds(in_period, unpaid_statuses, top_limit),
        orders_by_status=orders_by_status(in_period, statuses),
        daily=daily_series(in_period, start, now, unpaid_statuses),
    )
