"""
Payment gateway port.

External interface for capturing card payments and polling
QR-code payments. The storefront never stores card data; the
gateway hands back a payment id and a status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

# --- Types ---

PaymentStatus = Literal["pending", "paid", "failed"]
PaymentMethodKind = Literal["card", "qrcode"]


# --- Models ---


@dataclass(frozen=True)
class PaymentResult:
    """
    Result of a payment gateway call.

    Attributes:
        payment_id: Gateway payment identifier ("PAY-<epoch ms>")
        status: pending/paid/failed
        method: card or qrcode
        amount: Amount charged or requested
        error: Gateway error message when status is failed
    """

    payment_id: str
    status: PaymentStatus
    method: PaymentMethodKind
    amount: float
    error: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status != "failed"


# --- Port Interface ---


class PaymentGatewayPort(Protocol):
    """
    Port for the payment gateway.

    Implementations:
    - PaymentStubAdapter: Accepts every payment (dev)
    """

    def charge(self, order_number: str, amount: float, method: PaymentMethodKind) -> PaymentResult:
        """
        Start or capture a payment.

        Card payments are captured immediately; QR payments are
        created in pending state until the customer scans the code.
        """
        ...

    def get_status(self, payment_id: str) -> PaymentStatus:
        """Poll the gateway for the current state of a payment."""
        ...

    def get_payment(self, payment_id: str) -> PaymentResult | None:
        """The payment as created by charge(), or None if the gateway never issued it."""
        ...
