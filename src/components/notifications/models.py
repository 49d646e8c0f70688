"""
Notifications component - Input/Output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class OrderEmailLine:
    """One row of the order summary table."""

    name: str
    quantity: int
    price: float  # line total


@dataclass
class OrderConfirmationInput:
    order_number: str
    customer_email: str
    created_at: datetime
    lines: list[OrderEmailLine] = field(default_factory=list)
    delivery_name: str | None = None
    delivery_price: float = 0.0
    total_price: float = 0.0
    customer_name: str | None = None


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass
class NotificationOutput:
    success: bool = False
    message_id: str | None = None
    error: str | None = None
    error_code: str | None = None
