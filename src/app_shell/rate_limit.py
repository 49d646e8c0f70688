from collections import deque
from datetime import datetime, timedelta
from threading import Lock

from src.adapters.clock import SystemClock
from src.core.ports.time import TimePort
from src.rules.models import RateLimitRules, RateLimitWindow


class RateLimiter:
    """
    Sliding-window limits for the sign-in endpoints, kept in process.

    Attempts are keyed by client address and email together, so one
    noisy address cannot lock another user out. Keys whose attempts have
    all aged out of the longest window seen are swept periodically.
    """

    sweep_interval = timedelta(seconds=60)

    def __init__(self, rules: RateLimitRules, time_port: TimePort | None = None):
        self.rules = rules
        self._clock = time_port or SystemClock()
        self._attempts: dict[str, deque[datetime]] = {}
        self._lock = Lock()
        self._longest = timedelta(
            seconds=max(w.window_seconds for w in (rules.login, rules.send_code, rules.verify_code))
        )
        self._last_sweep = self._clock.now_utc()

    def _sweep(self, now: datetime) -> None:
        # caller holds the lock
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        cutoff = now - self._longest
        stale = [key for key, seen in self._attempts.items() if not seen or seen[-1] <= cutoff]
        for key in stale:
            del self._attempts[key]

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """Record an attempt under ``key`` unless ``limit`` is already used up."""
        if limit <= 0:
            return False

        now = self._clock.now_utc()
        cutoff = now - timedelta(seconds=window)
        with self._lock:
            self._longest = max(self._longest, timedelta(seconds=window))
            self._sweep(now)
            seen = self._attempts.setdefault(key, deque())
            while seen and seen[0] <= cutoff:
                seen.popleft()
            if len(seen) >= limit:
                return False
            seen.append(now)
            return True

    def _check(self, action: str, limits: RateLimitWindow, ip: str, email: str) -> bool:
        key = f"{action}:{ip}:{email.strip().lower()}"
        return self.allow_request(key, limits.window_seconds, limits.max_attempts)

    def check_login(self, ip: str, email: str) -> bool:
        return self._check("login", self.rules.login, ip, email)

    def check_send_code(self, ip: str, email: str) -> bool:
        return self._check("send_code", self.rules.send_code, ip, email)

    def check_verify_code(self, ip: str, email: str) -> bool:
        return self._check("verify_code", self.rules.verify_code, ip, email)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()
