from datetime import datetime
from typing import Protocol

from src.domain.entities import User


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def save(self, user: User) -> User:
        """Insert (id None) or update, profile included. Returns the stored user."""
        ...
    def list_all(self) -> list[User]: ...
    def delete(self, user_id: int) -> bool: ...


class AuthAdapterPort(Protocol):
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def hash_password(self, plain: str) -> str: ...
    def create_token(
        self, user_id: int, email: str, role_id: int, ttl_minutes: int, now: datetime | None = None
    ) -> str: ...
