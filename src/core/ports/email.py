"""
Outbound email.

The shop sends two kinds of transactional mail: the one-time sign-in
code and the order confirmation. Adapters never raise on delivery
problems; callers read EmailResult.ok and decide whether the failure
matters (sign-in) or only gets logged (checkout).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    # logged by the dev adapter, nothing left the process
    SKIPPED = "skipped"


@dataclass(frozen=True)
class EmailAddress:
    email: str
    name: str | None = None

    def __str__(self) -> str:
        if not self.name:
            return self.email
        quoted = self.name.replace('"', '\\"')
        return f'"{quoted}" <{self.email}>'


@dataclass(frozen=True)
class EmailMessage:
    recipient: EmailAddress
    subject: str
    body_html: str
    body_text: str = ""
    # None means the adapter's configured shop address
    sender: EmailAddress | None = None
    reply_to: EmailAddress | None = None
    # what the mail is about ("verification", "order_confirmation", ...)
    tag: str | None = None

    def __post_init__(self) -> None:
        if not self.recipient.email:
            raise ValueError("Recipient email is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not (self.body_html or self.body_text):
            raise ValueError("An html or text body is required")


@dataclass
class EmailResult:
    status: EmailStatus
    recipient: str = ""
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status is not EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(EmailStatus.SENT, recipient, message_id, sent_at=datetime.now(UTC))

    @classmethod
    def skipped(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(EmailStatus.SKIPPED, recipient, message_id, error="Logged, not sent")

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(EmailStatus.FAILED, recipient, error=error)


class EmailPort(Protocol):
    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult: ...

    def send(self, message: EmailMessage) -> EmailResult: ...
