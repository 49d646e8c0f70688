"""
Captcha verification port.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class CaptchaResult:
    success: bool
    score: float | None = None
    error_codes: list[str] = field(default_factory=list)


class CaptchaPort(Protocol):
    def verify(self, token: str, remote_ip: str | None = None) -> CaptchaResult:
        """Verify a client token. Must not raise; failures come back as success=False."""
        ...
