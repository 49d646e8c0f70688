"""
Payment stub adapter (dev).

Stub implementation of PaymentGatewayPort. Card payments are captured
immediately, QR payments start pending and report "paid" on the first
status poll, the way the hosted sandbox behaves.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from src.core.ports.payment import (
    PaymentGatewayPort,
    PaymentMethodKind,
    PaymentResult,
    PaymentStatus,
)

logger = logging.getLogger(__name__)


def new_payment_id() -> str:
    return f"PAY-{int(time.time() * 1000)}"


@dataclass
class PaymentStubAdapter:
    """Stub payment gateway for dev and tests."""

    # Force every charge to fail (testing)
    fail_charges: bool = False
    _payments: dict[str, PaymentResult] = field(default_factory=dict)

    def charge(self, order_number: str, amount: float, method: PaymentMethodKind) -> PaymentResult:
        payment_id = new_payment_id()
        while payment_id in self._payments:
            payment_id = f"{payment_id}1"

        if self.fail_charges:
            status: PaymentStatus = "failed"
        else:
            status = "paid" if method == "card" else "pending"

        result = PaymentResult(
            payment_id=payment_id,
            status=status,
            method=method,
            amount=amount,
            error="Declined by stub" if status == "failed" else None,
            metadata={"adapter": "stub", "order_number": order_number},
        )
        self._payments[payment_id] = result
        logger.debug(
            "PaymentStubAdapter.charge: order=%s amount=%s method=%s status=%s",
            order_number,
            amount,
            method,
            status,
        )
        return result

    def get_status(self, payment_id: str) -> PaymentStatus:
        existing = self._payments.get(payment_id)
        if existing is None or existing.status != "failed":
            # Sandbox QR codes are always paid once polled
            return "paid"
        return existing.status

    def get_payment(self, payment_id: str) -> PaymentResult | None:
        return self._payments.get(payment_id)


def _verify_protocol_compliance() -> None:
    adapter: PaymentGatewayPort = PaymentStubAdapter()
    _ = adapter.get_status("PAY-0")
    _ = adapter.get_payment("PAY-0")


_verify_protocol_compliance()
