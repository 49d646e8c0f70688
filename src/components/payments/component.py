"""
Payments component - Card and QR-code payments for placed orders.

Shell Layer - talks to the payment gateway port. The order moves to
Paid only through run_update_payment_status (QR) or the customer's
complete-payment call (card), both recording a history entry.
"""

from __future__ import annotations

import logging

from src.components.orders import is_final, run_complete_payment
from src.components.orders.ports import OrderRepoPort, ReferenceRepoPort
from src.core.ports.payment import PaymentGatewayPort, PaymentStatus
from src.core.ports.time import TimePort
from src.domain.entities import User
from src.rules.models import OrderRules

from ._impl import is_payment_id, qr_payload, validate_card
from .models import PaymentOutput, ProcessPaymentInput
from .ports import DeliveryLookupPort

logger = logging.getLogger(__name__)


def run_process_payment(
    inp: ProcessPaymentInput,
    user: User,
    orders: OrderRepoPort,
    deliveries: DeliveryLookupPort,
    gateway: PaymentGatewayPort,
    rules: OrderRules,
    time: TimePort,
) -> PaymentOutput:
    if inp.method not in ("card", "qrcode"):
        return PaymentOutput(error="Unsupported payment method", error_code="validation")

    order = orders.get_by_id(inp.order_id)
    if order is None or order.user_id != user.id:
        return PaymentOutput(error="Order not found", error_code="not_found")
    if order.status_id in rules.final_statuses or order.status_id == rules.statuses.paid:
        return PaymentOutput(
            error="Order cannot be paid in its current state", error_code="conflict"
        )

    amount = order.total_price if inp.amount is None else inp.amount
    if amount <= 0 or abs(amount - order.total_price) > 0.005:
        return PaymentOutput(
            error="Payment amount does not match the order total", error_code="validation"
        )

    if inp.method == "card":
        if inp.card is None:
            return PaymentOutput(error="Card details are required", error_code="validation")
        card_error = validate_card(inp.card, time.now_utc())
        if card_error:
            return PaymentOutput(error=card_error, error_code="validation")

    result = gateway.charge(order.order_number, amount, inp.method)
    logger.info(
        "Payment %s for order %s: method=%s status=%s",
        result.payment_id,
        order.order_number,
        inp.method,
        result.status,
    )
    if not result.success:
        return PaymentOutput(
            payment_id=result.payment_id,
            status=result.status,
            error=result.error or "Payment declined",
            error_code="payment_failed",
        )

    payload = None
    if inp.method == "qrcode":
        delivery = (
            deliveries.get_delivery_method(order.delivery_method_id)
            if order.delivery_method_id
            else None
        )
        payload = qr_payload(order, result.payment_id, delivery, time.now_utc())

    return PaymentOutput(
        payment_id=result.payment_id, status=result.status, qr_payload=payload, success=True
    )


def run_create_qr_payload(
    user: User,
    order_id: int,
    payment_id: str,
    orders: OrderRepoPort,
    deliveries: DeliveryLookupPort,
    time: TimePort,
) -> PaymentOutput:
    order = orders.get_by_id(order_id)
    if order is None or order.user_id != user.id:
        return PaymentOutput(error="Order not found", error_code="not_found")
    if not is_payment_id(payment_id):
        return PaymentOutput(error="Invalid payment id", error_code="validation")
    delivery = (
        deliveries.get_delivery_method(order.delivery_method_id) if order.delivery_method_id else None
    )
    return PaymentOutput(
        payment_id=payment_id,
        status="pending",
        qr_payload=qr_payload(order, payment_id, delivery, time.now_utc()),
        success=True,
    )


def run_check_qr_status(payment_id: str, gateway: PaymentGatewayPort) -> PaymentOutput:
    if not is_payment_id(payment_id):
        return PaymentOutput(error="Invalid payment id", error_code="validation")
    status: PaymentStatus = gateway.get_status(payment_id)
    return PaymentOutput(payment_id=payment_id, status=status, success=True)


def run_update_payment_status(
    user: User,
    order_id: int,
    payment_id: str,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    gateway: PaymentGatewayPort,
    rules: OrderRules,
    time: TimePort,
) -> PaymentOutput:
    """
    Poll the gateway and mark the order Paid once the payment has cleared.

    The payment must have been issued for this order, and closed orders
    (delivered or cancelled) are never reopened.
    """
    order = orders.get_by_id(order_id)
    if order is None or order.user_id != user.id:
        return PaymentOutput(error="Order not found", error_code="not_found")
    if is_final(order, rules):
        return PaymentOutput(error="Order is already closed", error_code="conflict")

    checked = run_check_qr_status(payment_id, gateway)
    if not checked.success:
        return checked

    payment = gateway.get_payment(payment_id)
    if payment is None or payment.metadata.get("order_number") != order.order_number:
        logger.warning(
            "Payment %s does not belong to order %s", payment_id, order.order_number
        )
        return PaymentOutput(error="Payment not found for this order", error_code="not_found")

    if checked.status == "failed":
        return PaymentOutput(
            payment_id=payment_id, status="failed", error="Payment failed", error_code="payment_failed"
        )
    if checked.status == "pending":
        return PaymentOutput(payment_id=payment_id, status="pending", success=True)

    if order.status_id != rules.statuses.paid:
        completed = run_complete_payment(user, order_id, orders, refs, rules, time)
        if not completed.success:
            return PaymentOutput(error=completed.error, error_code=completed.error_code)
    return PaymentOutput(payment_id=payment_id, status="paid", success=True)
