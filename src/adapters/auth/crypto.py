import os
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

SECRET_KEY = os.environ.get("ONLYPC_SECRET_KEY", "dev-secret-unsafe")
ALGORITHM = "HS256"

_pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class JWTAuthAdapter:
    """
    Signs session tokens with python-jose and hashes passwords with argon2.

    Tokens carry the user id as ``sub`` plus the email and role id the
    client UI shows; the server only trusts ``sub`` and reloads the rest.
    """

    def __init__(self, secret_key: str = SECRET_KEY, algorithm: str = ALGORITHM):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def hash_password(self, password: str) -> str:
        hashed: str = _pwd_context.hash(password)
        return hashed

    def verify_password(self, plain: str, hashed: str) -> bool:
        try:
            result: bool = _pwd_context.verify(plain, hashed)
        except ValueError:
            # Unrecognised or corrupt hash
            return False
        return result

    def create_token(
        self, user_id: int, email: str, role_id: int, ttl_minutes: int, now: datetime | None = None
    ) -> str:
        issued = now if now is not None else datetime.now(UTC)
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=UTC)
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "role_id": role_id,
            "iat": issued,
            "exp": issued + timedelta(minutes=ttl_minutes),
        }
        token: str = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return token

    def validate_token(self, token: str) -> int | None:
        """Return the user id carried by a valid, unexpired token."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
