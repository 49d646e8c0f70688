from datetime import UTC, datetime, timedelta

from jose import jwt

from src.adapters.auth.crypto import ALGORITHM, SECRET_KEY, JWTAuthAdapter


def test_hash_verify_success():
    auth = JWTAuthAdapter()
    pwd = "my-secret-password"
    hashed = auth.hash_password(pwd)

    assert hashed != pwd
    assert hashed.startswith("$argon2")
    assert auth.verify_password(pwd, hashed) is True


def test_verify_fail():
    auth = JWTAuthAdapter()
    hashed = auth.hash_password("password")

    assert auth.verify_password("wrong", hashed) is False


def test_verify_corrupt_hash():
    assert JWTAuthAdapter().verify_password("password", "not-a-hash") is False


def test_token_round_trip():
    auth = JWTAuthAdapter()
    token = auth.create_token(42, "a@example.com", 2, ttl_minutes=60)

    assert auth.validate_token(token) == 42
    claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    assert claims["email"] == "a@example.com"
    assert claims["role_id"] == 2


def test_expired_token_rejected():
    auth = JWTAuthAdapter()
    issued = datetime.now(UTC) - timedelta(hours=2)
    token = auth.create_token(42, "a@example.com", 2, ttl_minutes=60, now=issued)

    assert auth.validate_token(token) is None


def test_foreign_signature_rejected():
    token = jwt.encode({"sub": "42"}, "some-other-secret", algorithm=ALGORITHM)
    assert JWTAuthAdapter().validate_token(token) is None


def test_non_numeric_subject_rejected():
    token = jwt.encode({"sub": "abc"}, SECRET_KEY, algorithm=ALGORITHM)
    assert JWTAuthAdapter().validate_token(token) is None
