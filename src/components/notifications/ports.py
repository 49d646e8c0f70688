"""
Notifications component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.core.ports.email import EmailMessage, EmailResult


class EmailSenderPort(Protocol):
    def send(self, message: EmailMessage) -> EmailResult: ...
