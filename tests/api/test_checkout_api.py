"""
Tests for checkout, order tracking and payments over the HTTP API.
"""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.payment_stub import PaymentStubAdapter
from src.rules.models import Rules

COURIER = 1
PICKUP = 2
CPU_PRICE = 18990
SSD_PRICE = 11490

ADDRESS = {
    "recipient_name": "Anna Petrova",
    "phone": "+79991234567",
    "city": "Kazan",
    "street": "Baumana",
    "house": "12",
}


def _future_expiry() -> str:
    now = datetime.utcnow()
    return f"{now.month:02d}/{(now.year + 2) % 100:02d}"


def _place_order(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    body = {
        "items": [{"type": "product", "product_id": 1, "quantity": 1}],
        "delivery_method_id": COURIER,
    }
    body.update(overrides)
    response = client.post("/api/orders", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def headers(client_user, headers_for) -> dict[str, str]:
    return headers_for(client_user)


class TestCheckout:
    def test_checkout_from_cart_cookie(
        self,
        client: TestClient,
        headers: dict[str, str],
        rules: Rules,
        email_sender: DevEmailAdapter,
    ) -> None:
        client.post("/api/cart", json={"product_id": 1, "quantity": 2})
        client.post("/api/cart", json={"product_id": 7})

        response = client.post(
            "/api/orders", json={"delivery_method_id": COURIER}, headers=headers
        )

        assert response.status_code == 201
        order = response.json()
        assert order["status_id"] == 1
        assert order["total_price"] == 2 * CPU_PRICE + SSD_PRICE + 500
        assert len(order["order_number"]) == 12
        assert order["order_number"] == order["order_number"].upper()
        assert not client.cookies.get(rules.cookies.cart)

        sent = email_sender.sent_emails[-1]
        assert sent.recipient == "client@example.com"
        assert order["order_number"] in sent.subject

    def test_empty_cart_rejected(self, client: TestClient, headers: dict[str, str]) -> None:
        response = client.post("/api/orders", json={"delivery_method_id": COURIER}, headers=headers)
        assert response.status_code == 400

    def test_requires_auth(self, client: TestClient) -> None:
        response = client.post("/api/orders", json={"delivery_method_id": COURIER})
        assert response.status_code == 401

    def test_new_address_is_saved(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers, delivery_method_id=PICKUP, new_address=ADDRESS)

        assert order["total_price"] == CPU_PRICE
        addresses = client.get("/api/profile/addresses", headers=headers).json()
        assert [a["id"] for a in addresses] == [order["delivery_address_id"]]

    def test_invalid_new_address(self, client: TestClient, headers: dict[str, str]) -> None:
        response = client.post(
            "/api/orders",
            json={
                "items": [{"type": "product", "product_id": 1}],
                "delivery_method_id": COURIER,
                "new_address": {**ADDRESS, "city": "  "},
            },
            headers=headers,
        )
        assert response.status_code == 400

    def test_build_line_from_components(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(
            client,
            headers,
            items=[
                {
                    "type": "build",
                    "name": "Gaming",
                    "components": {
                        "processors": "amd-ryzen-7-7800x3d",
                        "motherboards": "asus-rog-strix-x670e-e",
                    },
                }
            ],
        )

        item = order["items"][0]
        assert item["build_id"] is not None
        assert item["price"] == 39990 + 45990
        assert item["build_snapshot"]["name"] == "Gaming"

    def test_unknown_delivery_method(self, client: TestClient, headers: dict[str, str]) -> None:
        response = client.post(
            "/api/orders",
            json={"items": [{"type": "product", "product_id": 1}], "delivery_method_id": 99},
            headers=headers,
        )
        assert response.status_code == 400

    def test_unknown_product_line(self, client: TestClient, headers: dict[str, str]) -> None:
        response = client.post(
            "/api/orders",
            json={"items": [{"type": "product", "product_id": 999}], "delivery_method_id": COURIER},
            headers=headers,
        )
        assert response.status_code == 404


class TestOrderViews:
    def test_owner_sees_detail(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)

        detail = client.get(f"/api/orders/{order['id']}", headers=headers).json()
        assert detail["order"]["order_number"] == order["order_number"]
        assert detail["status"]["id"] == 1
        assert detail["delivery_method"]["name"] == "Courier"

        listed = client.get("/api/orders", headers=headers).json()
        assert [o["id"] for o in listed] == [order["id"]]

    def test_other_client_is_denied(
        self, client: TestClient, headers: dict[str, str], make_user, headers_for
    ) -> None:
        order = _place_order(client, headers)
        other = headers_for(make_user("other@example.com"))

        assert client.get(f"/api/orders/{order['id']}", headers=other).status_code == 403
        # by number, a foreign order looks like a missing one
        by_number = client.get(f"/api/profile/orders/{order['order_number']}", headers=other)
        assert by_number.status_code == 404

    def test_manager_sees_any_order(
        self, client: TestClient, headers: dict[str, str], manager_user, headers_for
    ) -> None:
        order = _place_order(client, headers)
        response = client.get(f"/api/orders/{order['id']}", headers=headers_for(manager_user))
        assert response.status_code == 200

    def test_lookup_by_number_is_case_insensitive(
        self, client: TestClient, headers: dict[str, str]
    ) -> None:
        order = _place_order(client, headers)
        response = client.get(f"/api/profile/orders/{order['order_number'].lower()}", headers=headers)
        assert response.status_code == 200

    def test_public_tracking(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)

        data = client.get(f"/api/orders/track/{order['order_number']}").json()
        assert data["status"]["name"]
        assert data["total_price"] == CPU_PRICE + 500
        assert data["build"]["name"] == "Intel Core i5-13400F"

        assert client.get("/api/orders/track/0000DEADBEEF").status_code == 404

    def test_reference_lists(self, client: TestClient) -> None:
        assert len(client.get("/api/orders/statuses").json()) == 7
        assert {m["name"] for m in client.get("/api/orders/delivery-methods").json()} == {
            "Courier",
            "Pickup",
            "Post",
        }
        assert len(client.get("/api/orders/payment-methods").json()) == 2


class TestCancel:
    def test_cancel_new_order(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)

        response = client.post(f"/api/orders/{order['id']}/cancel", headers=headers)

        assert response.status_code == 200
        cancelled = response.json()
        assert cancelled["status_id"] == 7
        assert cancelled["history"][-1]["status_id"] == 7

    def test_cannot_cancel_shipped_order(
        self, client: TestClient, headers: dict[str, str], manager_user, headers_for
    ) -> None:
        order = _place_order(client, headers)
        client.put(
            f"/api/manager/orders/{order['id']}/status",
            json={"status_id": 5},
            headers=headers_for(manager_user),
        )

        response = client.post(f"/api/orders/{order['id']}/cancel", headers=headers)
        assert response.status_code == 409

    def test_cannot_cancel_foreign_order(
        self, client: TestClient, headers: dict[str, str], make_user, headers_for
    ) -> None:
        order = _place_order(client, headers)
        other = headers_for(make_user("other@example.com"))
        assert client.post(f"/api/orders/{order['id']}/cancel", headers=other).status_code == 404


class TestPayments:
    def _card(self, number: str = "4242 4242 4242 4242") -> dict[str, str]:
        return {
            "card_number": number,
            "cardholder_name": "ANNA PETROVA",
            "expiry_date": _future_expiry(),
            "cvv": "123",
        }

    def test_card_payment_then_complete(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)

        paid = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "card", "card": self._card()},
            headers=headers,
        )
        assert paid.status_code == 200
        assert paid.json()["status"] == "paid"
        assert paid.json()["payment_id"].startswith("PAY-")

        # the charge alone does not move the order
        assert client.get(f"/api/orders/{order['id']}", headers=headers).json()["order"][
            "status_id"
        ] == 1

        completed = client.post(f"/api/orders/{order['id']}/complete-payment", headers=headers)
        assert completed.json()["status_id"] == 3

    def test_bad_card_number(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)
        response = client.post(
            "/api/payments/process",
            json={
                "order_id": order["id"],
                "method": "card",
                "card": self._card("4242 4242 4242 4241"),
            },
            headers=headers,
        )
        assert response.status_code == 400

    def test_amount_must_match_total(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)
        response = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "card", "amount": 1, "card": self._card()},
            headers=headers,
        )
        assert response.status_code == 400

    def test_declined_charge(
        self, client: TestClient, headers: dict[str, str], gateway: PaymentStubAdapter
    ) -> None:
        order = _place_order(client, headers)
        gateway.fail_charges = True

        response = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "card", "card": self._card()},
            headers=headers,
        )
        assert response.status_code == 402

    def test_qr_payment_flow(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)

        started = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "qrcode"},
            headers=headers,
        ).json()
        assert started["status"] == "pending"
        payload = json.loads(started["qr_payload"])
        assert payload["paymentId"] == started["payment_id"]
        assert payload["amount"] == CPU_PRICE + 500
        assert payload["delivery"] == {"name": "Courier", "price": 500}

        regenerated = client.post(
            "/api/payments/qrcode",
            json={"order_id": order["id"], "payment_id": started["payment_id"]},
            headers=headers,
        ).json()
        assert json.loads(regenerated["qr_payload"])["paymentId"] == started["payment_id"]

        status = client.get(f"/api/payments/status/{started['payment_id']}", headers=headers)
        assert status.json()["status"] == "paid"

        updated = client.post(
            "/api/payments/update-status",
            json={"order_id": order["id"], "payment_id": started["payment_id"]},
            headers=headers,
        )
        assert updated.json()["status"] == "paid"
        detail = client.get(f"/api/orders/{order['id']}", headers=headers).json()
        assert detail["order"]["status_id"] == 3

    def test_paid_order_cannot_be_charged_again(
        self, client: TestClient, headers: dict[str, str]
    ) -> None:
        order = _place_order(client, headers)
        client.post(f"/api/orders/{order['id']}/complete-payment", headers=headers)

        response = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "card", "card": self._card()},
            headers=headers,
        )
        assert response.status_code == 409

    @pytest.mark.parametrize("status_id", [99, 6])
    def test_complete_payment_cannot_pick_status(
        self, client: TestClient, headers: dict[str, str], status_id: int
    ) -> None:
        order = _place_order(client, headers)

        response = client.post(
            f"/api/orders/{order['id']}/complete-payment",
            json={"status_id": status_id},
            headers=headers,
        )
        assert response.status_code == 400
        detail = client.get(f"/api/orders/{order['id']}", headers=headers).json()
        assert detail["order"]["status_id"] == 1

    def test_cancelled_order_stays_cancelled(
        self, client: TestClient, headers: dict[str, str]
    ) -> None:
        order = _place_order(client, headers)
        started = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "qrcode"},
            headers=headers,
        ).json()
        assert client.post(f"/api/orders/{order['id']}/cancel", headers=headers).status_code == 200

        polled = client.post(
            "/api/payments/update-status",
            json={"order_id": order["id"], "payment_id": started["payment_id"]},
            headers=headers,
        )
        assert polled.status_code == 409
        completed = client.post(f"/api/orders/{order['id']}/complete-payment", headers=headers)
        assert completed.status_code == 409

        detail = client.get(f"/api/orders/{order['id']}", headers=headers).json()
        assert detail["order"]["status_id"] == 7

    def test_payment_must_belong_to_order(
        self, client: TestClient, headers: dict[str, str]
    ) -> None:
        first = _place_order(client, headers)
        second = _place_order(client, headers)
        started = client.post(
            "/api/payments/process",
            json={"order_id": first["id"], "method": "qrcode"},
            headers=headers,
        ).json()

        for payment_id in ("PAY-1", started["payment_id"]):
            response = client.post(
                "/api/payments/update-status",
                json={"order_id": second["id"], "payment_id": payment_id},
                headers=headers,
            )
            assert response.status_code == 404
        detail = client.get(f"/api/orders/{second['id']}", headers=headers).json()
        assert detail["order"]["status_id"] == 1

    def test_non_ascii_digits_are_rejected(self, client: TestClient, headers: dict[str, str]) -> None:
        order = _place_order(client, headers)
        response = client.post(
            "/api/payments/process",
            json={"order_id": order["id"], "method": "card", "card": self._card("424242424242424²")},
            headers=headers,
        )
        assert response.status_code == 400

    def test_invalid_payment_id(self, client: TestClient, headers: dict[str, str]) -> None:
        assert client.get("/api/payments/status/nope", headers=headers).status_code == 400
