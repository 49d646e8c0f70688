"""
Payments component - Card capture, QR payloads and payment status polling.
"""

from ._impl import is_payment_id, luhn_ok, qr_payload, validate_card
from .component import (
    run_check_qr_status,
    run_create_qr_payload,
    run_process_payment,
    run_update_payment_status,
)
from .models import CardData, PaymentOutput, ProcessPaymentInput
from .ports import DeliveryLookupPort

__all__ = [
    # Entry points
    "run_process_payment",
    "run_create_qr_payload",
    "run_check_qr_status",
    "run_update_payment_status",
    # Helpers
    "is_payment_id",
    "luhn_ok",
    "qr_payload",
    "validate_card",
    # Models
    "CardData",
    "PaymentOutput",
    "ProcessPaymentInput",
    # Ports
    "DeliveryLookupPort",
]
