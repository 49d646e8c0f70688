"""
Key-value store port.

TTL lookups used for verification codes, the user cache and
search result caching. Values are strings; callers serialize.
"""

from __future__ import annotations

from typing import Protocol


class KVStorePort(Protocol):
    def get(self, key: str) -> str | None:
        """Return the value, or None when missing or expired."""
        ...

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store a value; ttl_seconds=None keeps it until deleted."""
        ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool:
        """Return True when the backend is reachable."""
        ...
