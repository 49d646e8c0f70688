"""
Email adapter for development and tests.

Nothing is delivered: each message is logged with a short body preview
and kept in ``sent_emails`` so tests can read back sign-in codes and
order confirmations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from src.core.ports.email import EmailAddress, EmailMessage, EmailResult

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    logged_at: datetime
    tag: str | None = None


class DevEmailAdapter:
    def __init__(self, body_preview_length: int = 100) -> None:
        self.body_preview_length = body_preview_length
        self.sent_emails: list[SentEmail] = []

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        return self.send(
            EmailMessage(EmailAddress(recipient), subject, body_html, body_text or "")
        )

    def send(self, message: EmailMessage) -> EmailResult:
        record = SentEmail(
            id=f"dev-{uuid4().hex[:12]}",
            recipient=message.recipient.email,
            subject=message.subject,
            body_html=message.body_html,
            body_text=message.body_text,
            logged_at=datetime.now(UTC),
            tag=message.tag,
        )
        self.sent_emails.append(record)

        preview = message.body_text or message.body_html
        if len(preview) > self.body_preview_length:
            preview = f"{preview[: self.body_preview_length]}..."
        logger.info(
            "Email not sent (dev) id=%s to=%s subject=%r body=%s",
            record.id,
            record.recipient,
            record.subject,
            preview,
        )
        return EmailResult.skipped(record.recipient, record.id)

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()
