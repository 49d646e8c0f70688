"""
Payments component unit tests.
"""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from src.adapters.payment_stub import PaymentStubAdapter
from src.components.payments import (
    CardData,
    ProcessPaymentInput,
    is_payment_id,
    luhn_ok,
    run_check_qr_status,
    run_create_qr_payload,
    run_process_payment,
    run_update_payment_status,
    validate_card,
)
from src.domain.entities import (
    DeliveryMethod,
    Order,
    OrderHistory,
    OrderItem,
    OrderStatus,
    User,
)
from src.rules.loader import load_rules

# --- Mock Implementations ---


class MockOrders:
    def __init__(self, order: Order) -> None:
        self.orders = {order.id: order}

    def get_by_id(self, order_id: int) -> Order | None:
        return self.orders.get(order_id)

    def update_status(self, order_id: int, status_id: int, updated_at: datetime) -> bool:
        self.orders[order_id] = self.orders[order_id].model_copy(
            update={"status_id": status_id, "updated_at": updated_at}
        )
        return True

    def add_history(self, entry: OrderHistory) -> OrderHistory:
        order = self.orders[entry.order_id]
        self.orders[entry.order_id] = order.model_copy(update={"history": [*order.history, entry]})
        return entry


class MockDeliveries:
    def get_delivery_method(self, method_id: int) -> DeliveryMethod | None:
        return DeliveryMethod(id=method_id, name="Courier", price=500)


class MockStatuses:
    def get_status(self, status_id: int) -> OrderStatus | None:
        names = ["New", "Confirmed", "Paid", "Assembling", "Shipped", "Delivered", "Cancelled"]
        return OrderStatus(id=status_id, name=names[status_id - 1]) if 1 <= status_id <= 7 else None


class MockTime:
    def now_utc(self) -> datetime:
        return datetime(2026, 2, 1, 9, 30)


GOOD_CARD = CardData("4242 4242 4242 4242", "ANNA IVANOVA", "12/29", "123")


@pytest.fixture
def rules():
    return load_rules().orders


@pytest.fixture
def user() -> User:
    return User(id=5, email="c@example.com", password_hash="x")


@pytest.fixture
def orders() -> MockOrders:
    return MockOrders(
        Order(
            id=1,
            order_number="2602ABCDEF12",
            user_id=5,
            status_id=1,
            delivery_method_id=1,
            total_price=2500.0,
            items=[
                OrderItem(id=1, order_id=1, build_id=3, quantity=2, price=2000.0, build_snapshot={"name": "Office"})
            ],
        )
    )


class TestHelpers:
    def test_luhn(self) -> None:
        assert luhn_ok("4242424242424242")
        assert not luhn_ok("4242424242424241")

    def test_validate_card(self) -> None:
        now = datetime(2026, 2, 1)
        assert validate_card(GOOD_CARD, now) is None
        assert validate_card(CardData("1234", "A B", "12/29", "123"), now) == "Invalid card number"
        assert validate_card(CardData("4242424242424242", "A B", "01/26", "123"), now) == "Card has expired"
        assert validate_card(CardData("4242424242424242", "A B", "13/29", "123"), now) == "Invalid expiry date"
        assert validate_card(CardData("4242424242424242", "A B", "12/29", "12"), now) == "Invalid CVV"

    @pytest.mark.parametrize(
        "number,cvv,error",
        [
            ("424242424242424\u00b2", "123", "Invalid card number"),
            ("\uff14242424242424242", "123", "Invalid card number"),
            ("4242424242424242", "1\u00b23", "Invalid CVV"),
        ],
    )
    def test_only_ascii_digits_count(self, number, cvv, error) -> None:
        assert validate_card(CardData(number, "A B", "12/29", cvv), datetime(2026, 2, 1)) == error

    def test_card_repr_is_masked(self) -> None:
        assert "4242 4242 4242 4242" not in repr(GOOD_CARD)

    def test_payment_id_format(self) -> None:
        assert is_payment_id("PAY-1700000000000")
        assert not is_payment_id("1700000000000")
        assert not is_payment_id("PAY-abc")


class TestProcessPayment:
    def test_card_is_captured(self, user, orders, rules) -> None:
        out = run_process_payment(
            ProcessPaymentInput(order_id=1, method="card", amount=2500.0, card=GOOD_CARD),
            user,
            orders,
            MockDeliveries(),
            PaymentStubAdapter(),
            rules,
            MockTime(),
        )
        assert out.success
        assert out.status == "paid"
        assert out.payment_id.startswith("PAY-")
        assert out.qr_payload is None

    def test_qr_is_pending_with_payload(self, user, orders, rules) -> None:
        out = run_process_payment(
            ProcessPaymentInput(order_id=1, method="qrcode"),
            user,
            orders,
            MockDeliveries(),
            PaymentStubAdapter(),
            rules,
            MockTime(),
        )
        assert out.status == "pending"
        payload = json.loads(out.qr_payload)
        assert payload["paymentId"] == out.payment_id
        assert payload["amount"] == 2500.0
        assert payload["items"] == [{"name": "Office", "quantity": 2, "price": 2000.0}]
        assert payload["delivery"] == {"name": "Courier", "price": 500}

    @pytest.mark.parametrize(
        "inp,code",
        [
            (ProcessPaymentInput(order_id=1, method="card"), "validation"),
            (ProcessPaymentInput(order_id=1, method="card", amount=1.0, card=GOOD_CARD), "validation"),
            (ProcessPaymentInput(order_id=1, method="cash"), "validation"),
            (ProcessPaymentInput(order_id=9, method="qrcode"), "not_found"),
        ],
    )
    def test_rejections(self, inp, code, user, orders, rules) -> None:
        out = run_process_payment(
            inp, user, orders, MockDeliveries(), PaymentStubAdapter(), rules, MockTime()
        )
        assert out.error_code == code

    def test_declined(self, user, orders, rules) -> None:
        out = run_process_payment(
            ProcessPaymentInput(order_id=1, method="card", card=GOOD_CARD),
            user,
            orders,
            MockDeliveries(),
            PaymentStubAdapter(fail_charges=True),
            rules,
            MockTime(),
        )
        assert not out.success
        assert out.error_code == "payment_failed"


class TestQrFlow:
    def test_create_payload(self, user, orders) -> None:
        out = run_create_qr_payload(user, 1, "PAY-1", orders, MockDeliveries(), MockTime())
        assert json.loads(out.qr_payload)["date"] == "2026-02-01T09:30:00"
        assert run_create_qr_payload(user, 1, "bad", orders, MockDeliveries(), MockTime()).error_code == "validation"

    def test_check_status(self) -> None:
        gateway = PaymentStubAdapter()
        assert run_check_qr_status("PAY-123", gateway).status == "paid"
        assert run_check_qr_status("nope", gateway).error_code == "validation"

    def test_update_marks_order_paid(self, user, orders, rules) -> None:
        gateway = PaymentStubAdapter()
        payment = gateway.charge("2602ABCDEF12", 2500.0, "qrcode")
        out = run_update_payment_status(
            user, 1, payment.payment_id, orders, MockStatuses(), gateway, rules, MockTime()
        )
        assert out.success and out.status == "paid"
        order = orders.get_by_id(1)
        assert order.status_id == 3
        assert order.history[-1].comment == "Payment completed"

        # polling again does not add another history entry
        run_update_payment_status(
            user, 1, payment.payment_id, orders, MockStatuses(), gateway, rules, MockTime()
        )
        assert len(orders.get_by_id(1).history) == 1

    def test_update_foreign_order(self, orders, rules) -> None:
        stranger = User(id=6, email="s@example.com", password_hash="x")
        out = run_update_payment_status(
            stranger, 1, "PAY-123", orders, MockStatuses(), PaymentStubAdapter(), rules, MockTime()
        )
        assert out.error_code == "not_found"

    def test_update_requires_payment_issued_for_the_order(self, user, orders, rules) -> None:
        gateway = PaymentStubAdapter()
        other = gateway.charge("2602FFFFFF00", 2500.0, "qrcode")
        for payment_id in ("PAY-1", other.payment_id):
            out = run_update_payment_status(
                user, 1, payment_id, orders, MockStatuses(), gateway, rules, MockTime()
            )
            assert out.error_code == "not_found"
        assert orders.get_by_id(1).status_id == 1

    @pytest.mark.parametrize("status_id", [6, 7])
    def test_update_never_reopens_closed_orders(self, user, orders, rules, status_id) -> None:
        gateway = PaymentStubAdapter()
        payment = gateway.charge("2602ABCDEF12", 2500.0, "qrcode")
        orders.update_status(1, status_id, datetime(2026, 2, 1))

        out = run_update_payment_status(
            user, 1, payment.payment_id, orders, MockStatuses(), gateway, rules, MockTime()
        )
        assert out.error_code == "conflict"
        assert orders.get_by_id(1).status_id == status_id
