"""
Key-value store adapters.

RedisKVStore is used when ONLYPC_REDIS_URL is configured. The
in-memory store keeps the same TTL semantics for single-process
dev servers and tests.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from threading import Lock

import redis

from src.adapters.clock import SystemClock
from src.core.ports.time import TimePort

logger = logging.getLogger(__name__)


class RedisKVStore:
    def __init__(self, url: str, namespace: str = "onlypc") -> None:
        self.namespace = namespace
        self.client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> str | None:
        try:
            value = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("Redis get %s failed: %s", key, e)
            return None
        return value if value is None else str(value)

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        try:
            if ttl_seconds:
                self.client.setex(self._key(key), ttl_seconds, value)
            else:
                self.client.set(self._key(key), value)
        except redis.RedisError as e:
            logger.warning("Redis set %s failed, value not stored: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as e:
            logger.warning("Redis delete %s failed: %s", key, e)

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False


class InMemoryKVStore:
    """In-memory TTL store - suitable for single-process deployments."""

    sweep_interval = timedelta(seconds=60)

    def __init__(self, clock: TimePort | None = None) -> None:
        self._clock = clock or SystemClock()
        self._data: dict[str, tuple[str, datetime | None]] = {}
        self._lock = Lock()
        self._last_sweep = self._clock.now_utc()

    def _sweep(self, now: datetime) -> None:
        # caller holds the lock
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        expired = [k for k, (_, at) in self._data.items() if at is not None and at <= now]
        for key in expired:
            del self._data[key]

    def get(self, key: str) -> str | None:
        now = self._clock.now_utc()
        with self._lock:
            self._sweep(now)
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= now:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        now = self._clock.now_utc()
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        with self._lock:
            self._sweep(now)
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Clear everything - useful for testing."""
        with self._lock:
            self._data.clear()
