"""
Orders component - Functional Core.

Order numbers, item snapshots, totals and status bookkeeping.
No I/O here; the shell resolves builds and products first.
"""

from __future__ import annotations

import math
import re
import uuid
from datetime import datetime

from src.domain.entities import Build, Order, Product
from src.rules.models import OrderRules

from .models import AddressInput, BuildSnapshot, OrderStatistics

PHONE_REGEX = re.compile(r"^\+?[1-9]\d{1,14}$")


def generate_order_number(now: datetime, hex_source: str | None = None) -> str:
    """YYMM + 8 upper-case hex characters, e.g. 2601A1B2C3D4."""
    suffix = (hex_source or uuid.uuid4().hex)[:8].upper()
    return f"{now:%y%m}{suffix}"


def build_snapshot(build: Build) -> BuildSnapshot:
    return {
        "name": build.name,
        "slug": build.slug,
        "components": dict(build.components),
        "total_price": build.total_price,
    }


def product_snapshot(product: Product) -> BuildSnapshot:
    return {
        "name": product.title,
        "slug": product.slug,
        "components": {},
        "total_price": product.price,
        "product_id": product.id,
    }


def order_total(line_prices: list[float], delivery_price: float) -> float:
    return round(sum(line_prices) + delivery_price, 2)


def is_final(order: Order, rules: OrderRules) -> bool:
    return order.status_id in rules.final_statuses


def can_cancel(order: Order, rules: OrderRules) -> bool:
    return order.status_id < rules.cancellable_below


def compute_statistics(orders: list[Order], rules: OrderRules) -> OrderStatistics:
    groups = rules.statistics
    stats = OrderStatistics(total=len(orders))
    for order in orders:
        if order.status_id in groups.pending:
            stats.pending += 1
        elif order.status_id in groups.processing:
            stats.processing += 1
        elif order.status_id in groups.completed:
            stats.completed += 1
        elif order.status_id in groups.cancelled:
            stats.cancelled += 1
        if order.status_id not in groups.cancelled:
            stats.revenue += order.total_price
    stats.revenue = round(stats.revenue, 2)
    return stats


def paginate(total: int, page: int, limit: int) -> tuple[int, int]:
    """Return (offset, total_pages)."""
    return (page - 1) * limit, max(1, math.ceil(total / limit))


def validate_address(inp: AddressInput) -> dict[str, str]:
    errors: dict[str, str] = {}
    for name in ("recipient_name", "city", "street", "house"):
        if not (getattr(inp, name) or "").strip():
            errors[name] = "Required"
    if not PHONE_REGEX.match((inp.phone or "").strip()):
        errors["phone"] = "Invalid phone number"
    return errors
