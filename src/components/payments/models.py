"""
Payments component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.ports.payment import PaymentMethodKind, PaymentStatus


@dataclass(frozen=True)
class CardData:
    """Card details are checked for shape and passed to the gateway; never stored or logged."""

    card_number: str
    cardholder_name: str
    expiry_date: str  # MM/YY
    cvv: str

    def __repr__(self) -> str:
        return f"CardData(card_number='****{self.card_number[-4:]}')"


@dataclass(frozen=True)
class ProcessPaymentInput:
    order_id: int
    method: PaymentMethodKind
    amount: float | None = None
    card: CardData | None = None


@dataclass
class PaymentOutput:
    payment_id: str | None = None
    status: PaymentStatus | None = None
    qr_payload: str | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
