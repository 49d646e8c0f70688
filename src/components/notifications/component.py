"""
Notifications component - Transactional email.

Shell layer around the renderers: builds the message and hands it
to the configured email adapter. Adapters never raise; a failed
delivery comes back as success=False and is logged here.
"""

from __future__ import annotations

import logging

from src.core.ports.email import EmailAddress, EmailMessage

from ._impl import render_order_confirmation, render_verification_code
from .models import NotificationOutput, OrderConfirmationInput
from .ports import EmailSenderPort

logger = logging.getLogger(__name__)


def _deliver(
    sender: EmailSenderPort, to: str, subject: str, html: str, text: str | None, kind: str
) -> NotificationOutput:
    result = sender.send(EmailMessage(EmailAddress(to), subject, html, text or "", tag=kind))
    if result.ok:
        return NotificationOutput(success=True, message_id=result.message_id)
    logger.warning("Failed to send %s email to %s: %s", kind, result.recipient, result.error)
    return NotificationOutput(error=result.error or "Email delivery failed", error_code="delivery")


def run_send_verification_code(
    email: str, code: str, sender: EmailSenderPort, ttl_seconds: int = 600
) -> NotificationOutput:
    rendered = render_verification_code(code, ttl_seconds // 60)
    return _deliver(sender, email, rendered.subject, rendered.html, rendered.text, "verification")


def run_send_order_confirmation(
    inp: OrderConfirmationInput, sender: EmailSenderPort
) -> NotificationOutput:
    if not inp.customer_email:
        return NotificationOutput(error="Customer email is missing", error_code="validation")
    rendered = render_order_confirmation(inp)
    out = _deliver(
        sender, inp.customer_email, rendered.subject, rendered.html, rendered.text, "order_confirmation"
    )
    if out.success:
        logger.info("Order confirmation for %s sent to %s", inp.order_number, inp.customer_email)
    return out


def run_preview_order_confirmation(inp: OrderConfirmationInput) -> str:
    return render_order_confirmation(inp).html


def run_send_email(
    to: str, subject: str, html: str, text: str | None, sender: EmailSenderPort
) -> NotificationOutput:
    if not to or not subject:
        return NotificationOutput(error="Recipient and subject are required", error_code="validation")
    if not html and not text:
        return NotificationOutput(error="Email body is required", error_code="validation")
    return _deliver(sender, to, subject, html, text, "generic")
