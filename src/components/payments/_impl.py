"""
Payments component - Functional Core.
"""

from __future__ import annotations

import json
import re
from datetime import datetime

from src.domain.entities import DeliveryMethod, Order

from .models import CardData

PAYMENT_ID_REGEX = re.compile(r"PAY-[0-9]+")
EXPIRY_REGEX = re.compile(r"^(0[1-9]|1[0-2])/([0-9]{2})$")
CARD_NUMBER_REGEX = re.compile(r"[0-9]{13,19}")
CVV_REGEX = re.compile(r"[0-9]{3,4}")


def is_payment_id(value: str) -> bool:
    return PAYMENT_ID_REGEX.fullmatch(value) is not None


def luhn_ok(number: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(number)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def validate_card(card: CardData, now: datetime) -> str | None:
    """Return an error message, or None when the card looks usable."""
    number = re.sub(r"[\s-]", "", card.card_number)
    if not CARD_NUMBER_REGEX.fullmatch(number) or not luhn_ok(number):
        return "Invalid card number"
    if len(card.cardholder_name.strip()) < 2:
        return "Cardholder name is required"
    match = EXPIRY_REGEX.match(card.expiry_date.strip())
    if not match:
        return "Invalid expiry date"
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if (year, month) < (now.year, now.month):
        return "Card has expired"
    if not CVV_REGEX.fullmatch(card.cvv):
        return "Invalid CVV"
    return None


def qr_payload(
    order: Order, payment_id: str, delivery: DeliveryMethod | None, now: datetime
) -> str:
    """JSON document encoded into the payment QR code."""
    payload = {
        "paymentId": payment_id,
        "amount": order.total_price,
        "date": now.isoformat(),
        "items": [
            {
                "name": item.build_snapshot.get("name", "Item"),
                "quantity": item.quantity,
                "price": item.price,
            }
            for item in order.items
        ],
        "delivery": (
            {"name": delivery.name, "price": delivery.price} if delivery is not None else None
        ),
    }
    return json.dumps(payload, ensure_ascii=False)
