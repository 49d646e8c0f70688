"""
Time port.

All stored timestamps are naive UTC. Components take a TimePort
so tests can pin "now".
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
