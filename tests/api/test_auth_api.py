"""
Tests for the auth API: registration, two-step login with an emailed
code, session cookie, logout and rate limiting.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.kv_store import InMemoryKVStore
from src.components.auth import verification_key
from src.rules.models import Rules

PASSWORD = "s3cret-pass"


def register(client: TestClient, email: str = "new@example.com", **overrides: str):
    body = {
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "captcha_token": "token",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def sign_in(client: TestClient, kv: InMemoryKVStore, rules: Rules, email: str) -> dict:
    assert client.post("/api/auth/login", json={"email": email, "password": PASSWORD}).status_code == 200
    code = kv.get(verification_key(email, rules))
    assert code is not None
    response = client.post("/api/auth/verify-code", json={"email": email, "code": code})
    assert response.status_code == 200
    return response.json()


class TestRegister:
    def test_register_creates_client(self, client: TestClient) -> None:
        response = register(client, email="  New@Example.com ")

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new@example.com"
        assert data["role"] == "client"
        assert "password_hash" not in data

    def test_register_duplicate_email(self, client: TestClient) -> None:
        register(client)
        response = register(client)
        assert response.status_code == 409

    def test_register_password_mismatch(self, client: TestClient) -> None:
        response = register(client, confirm_password="different")
        assert response.status_code == 400
        assert "match" in response.json()["detail"]

    def test_register_requires_captcha(self, client: TestClient) -> None:
        response = register(client, captcha_token="")
        assert response.status_code == 400


class TestLogin:
    def test_login_emails_code(
        self, client: TestClient, email_sender: DevEmailAdapter, kv: InMemoryKVStore, rules: Rules
    ) -> None:
        register(client)
        response = client.post(
            "/api/auth/login", json={"email": "new@example.com", "password": PASSWORD}
        )

        assert response.status_code == 200
        assert response.json() == {"requires_verification": True, "email": "new@example.com"}
        code = kv.get(verification_key("new@example.com", rules))
        assert code is not None and len(code) == rules.auth.verification.code_length
        assert email_sender.sent_emails[-1].recipient == "new@example.com"
        assert code in email_sender.sent_emails[-1].body_html

    def test_wrong_password_is_unauthorized(self, client: TestClient) -> None:
        register(client)
        response = client.post(
            "/api/auth/login", json={"email": "new@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401

    def test_unknown_email_looks_like_wrong_password(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401

    def test_login_rate_limited(self, client: TestClient, rules: Rules) -> None:
        body = {"email": "ghost@example.com", "password": PASSWORD}
        for _ in range(rules.rate_limits.login.max_attempts):
            client.post("/api/auth/login", json=body)

        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 429


class TestVerifyCode:
    def test_verify_sets_cookie_and_session(
        self, client: TestClient, kv: InMemoryKVStore, rules: Rules
    ) -> None:
        register(client)
        data = sign_in(client, kv, rules, "new@example.com")

        assert data["token_type"] == "bearer"
        assert data["user"]["last_login_at"] is not None
        assert client.cookies.get(rules.auth.cookie_name) == data["access_token"]
        # code is single use
        assert kv.get(verification_key("new@example.com", rules)) is None

        check = client.get("/api/auth/check")
        assert check.status_code == 200
        assert check.json()["email"] == "new@example.com"

    def test_wrong_code_rejected(self, client: TestClient) -> None:
        register(client)
        client.post("/api/auth/login", json={"email": "new@example.com", "password": PASSWORD})

        response = client.post(
            "/api/auth/verify-code", json={"email": "new@example.com", "code": "not-it"}
        )
        assert response.status_code == 401

    def test_code_guessing_is_rate_limited(
        self, client: TestClient, kv: InMemoryKVStore, rules: Rules
    ) -> None:
        register(client)
        client.post("/api/auth/login", json={"email": "new@example.com", "password": PASSWORD})
        code = kv.get(verification_key("new@example.com", rules))

        for guess in range(rules.rate_limits.verify_code.max_attempts):
            response = client.post(
                "/api/auth/verify-code",
                json={"email": "new@example.com", "code": f"{guess:06d}x"},
            )
            assert response.status_code == 401

        # even the right code is refused once the budget is spent
        response = client.post("/api/auth/verify-code", json={"email": "NEW@example.com", "code": code})
        assert response.status_code == 429

    def test_send_code_unknown_user(self, client: TestClient) -> None:
        response = client.post("/api/auth/send-code", json={"email": "ghost@example.com"})
        assert response.status_code == 404

    def test_send_code_reissues(
        self, client: TestClient, kv: InMemoryKVStore, rules: Rules
    ) -> None:
        register(client)
        response = client.post("/api/auth/send-code", json={"email": "new@example.com"})

        assert response.status_code == 200
        assert kv.get(verification_key("new@example.com", rules)) is not None


class TestSession:
    def test_check_requires_auth(self, client: TestClient) -> None:
        assert client.get("/api/auth/check").status_code == 401

    def test_logout_clears_cookie_and_cache(
        self, client: TestClient, kv: InMemoryKVStore, rules: Rules
    ) -> None:
        register(client)
        data = sign_in(client, kv, rules, "new@example.com")
        user_id = data["user"]["id"]
        assert kv.get(f"user:{user_id}") is not None

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert kv.get(f"user:{user_id}") is None
        assert client.get("/api/auth/check").status_code == 401

    def test_bearer_header_fallback(self, client: TestClient, client_user, headers_for) -> None:
        response = client.get("/api/auth/check", headers=headers_for(client_user))
        assert response.status_code == 200
        assert response.json()["id"] == client_user.id

    def test_garbage_token_is_anonymous(self, client: TestClient) -> None:
        response = client.get("/api/auth/check", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.parametrize("path", ["/api/admin/verify", "/api/manager/verify"])
    def test_client_cannot_use_staff_areas(
        self, client: TestClient, client_user, headers_for, path: str
    ) -> None:
        assert client.get(path, headers=headers_for(client_user)).status_code == 403


class TestProfile:
    def test_update_profile(self, client: TestClient, client_user, headers_for) -> None:
        headers = headers_for(client_user)
        response = client.put(
            "/api/profile",
            json={"first_name": "Anna", "phone": "+79991234567", "city": "Kazan"},
            headers=headers,
        )

        assert response.status_code == 200
        profile = client.get("/api/profile", headers=headers).json()
        assert profile["first_name"] == "Anna"
        assert profile["city"] == "Kazan"

    def test_invalid_profile_fields(self, client: TestClient, client_user, headers_for) -> None:
        response = client.put(
            "/api/profile",
            json={"first_name": "A", "phone": "12-34"},
            headers=headers_for(client_user),
        )

        assert response.status_code == 400
        fields = response.json()["detail"]["fields"]
        assert set(fields) == {"first_name", "phone"}

    def test_change_password(
        self, client: TestClient, make_user, headers_for
    ) -> None:
        from src.adapters.auth.crypto import JWTAuthAdapter

        user = make_user("pw@example.com", password_hash=JWTAuthAdapter().hash_password(PASSWORD))
        headers = headers_for(user)

        response = client.post(
            "/api/profile/password",
            json={
                "current_password": PASSWORD,
                "new_password": "another-pass",
                "confirm_password": "another-pass",
            },
            headers=headers,
        )
        assert response.status_code == 200

        login = client.post(
            "/api/auth/login", json={"email": "pw@example.com", "password": "another-pass"}
        )
        assert login.status_code == 200

    def test_addresses_first_is_default(self, client: TestClient, client_user, headers_for) -> None:
        headers = headers_for(client_user)
        address = {
            "recipient_name": "Anna Petrova",
            "phone": "+79991234567",
            "city": "Kazan",
            "street": "Baumana",
            "house": "1",
        }
        first = client.post("/api/profile/addresses", json=address, headers=headers)
        second = client.post(
            "/api/profile/addresses", json={**address, "house": "2"}, headers=headers
        )
        assert first.status_code == 201 and second.status_code == 201
        assert first.json()["is_default"] is True
        assert second.json()["is_default"] is False

        client.post(f"/api/profile/addresses/{second.json()['id']}/default", headers=headers)
        listed = client.get("/api/profile/addresses", headers=headers).json()
        defaults = [a["id"] for a in listed if a["is_default"]]
        assert defaults == [second.json()["id"]]
