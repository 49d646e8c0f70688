"""
Orders component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from src.domain.entities import DeliveryAddress, DeliveryMethod, Order, OrderStatus, PaymentMethod

CheckoutItemType = Literal["build", "product"]


# --- Input Models ---


@dataclass
class CheckoutItem:
    """
    One line handed to checkout.

    Build lines are resolved by build_id, then slug, then saved as a
    new build from components. Product lines need product_id.
    """

    type: CheckoutItemType = "build"
    quantity: int = 1
    build_id: int | None = None
    slug: str | None = None
    name: str | None = None
    components: dict[str, str] = field(default_factory=dict)
    product_id: int | None = None


@dataclass
class AddressInput:
    recipient_name: str
    phone: str
    city: str
    street: str
    house: str
    apartment: str | None = None
    postal_code: str | None = None
    is_default: bool = False


@dataclass
class CreateOrderInput:
    items: list[CheckoutItem]
    delivery_method_id: int
    payment_method_id: int | None = None
    delivery_address_id: int | None = None
    new_address: AddressInput | None = None
    comment: str | None = None


@dataclass(frozen=True)
class ListOrdersInput:
    status_id: int | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20


@dataclass
class DeliveryMethodInput:
    name: str
    price: float = 0.0
    description: str | None = None
    estimated_days: str | None = None
    is_active: bool = True


# --- Output Models ---


@dataclass
class OrderDetail:
    order: Order
    status: OrderStatus | None = None
    delivery_method: DeliveryMethod | None = None
    payment_method: PaymentMethod | None = None
    address: DeliveryAddress | None = None


@dataclass
class OrderOutput:
    order: Order | None = None
    detail: OrderDetail | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class OrderPage:
    orders: list[Order]
    total_items: int
    total_pages: int
    current_page: int


@dataclass
class TrackedBuild:
    name: str
    total_price: float


@dataclass
class TrackingInfo:
    """Public view of an order, safe to show without signing in."""

    order_number: str
    status: OrderStatus | None
    total_price: float
    created_at: datetime
    updated_at: datetime
    build: TrackedBuild | None = None


@dataclass
class TrackingOutput:
    tracking: TrackingInfo | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class OrderStatistics:
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    cancelled: int = 0
    revenue: float = 0.0


@dataclass
class DeliveryMethodOutput:
    method: DeliveryMethod | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class AddressOutput:
    address: DeliveryAddress | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


BuildSnapshot = dict[str, Any]
