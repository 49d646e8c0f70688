"""
Delivers shop mail through an SMTP relay as multipart text + HTML.

Relay errors are logged and come back as FAILED results; see
src.core.ports.email for how callers treat them.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from src.core.ports.email import EmailAddress, EmailMessage, EmailResult

logger = logging.getLogger(__name__)


@dataclass
class SMTPConfig:
    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    sender: EmailAddress = field(
        default_factory=lambda: EmailAddress("noreply@onlypc.local", "OnlyPC")
    )
    timeout: float = 10.0


class SMTPEmailAdapter:
    def __init__(self, config: SMTPConfig) -> None:
        self.config = config

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        return self.send(EmailMessage(EmailAddress(recipient), subject, body_html, body_text or ""))

    def _build(self, message: EmailMessage, sender: EmailAddress) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = str(sender)
        mime["To"] = str(message.recipient)
        mime["Message-ID"] = make_msgid(domain=sender.email.rpartition("@")[2] or None)
        if message.reply_to:
            mime["Reply-To"] = str(message.reply_to)
        if message.tag:
            mime["X-OnlyPC-Tag"] = message.tag
        # plain part first: clients show the last alternative they support
        if message.body_text:
            mime.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            mime.attach(MIMEText(message.body_html, "html", "utf-8"))
        return mime

    def send(self, message: EmailMessage) -> EmailResult:
        sender = message.sender or self.config.sender
        to = message.recipient.email
        mime = self._build(message, sender)
        cfg = self.config

        try:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout) as smtp:
                if cfg.use_tls:
                    smtp.starttls()
                if cfg.username and cfg.password:
                    smtp.login(cfg.username, cfg.password)
                smtp.sendmail(sender.email, [to], mime.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP delivery to %s via %s failed: %s", to, cfg.host, e)
            return EmailResult.failed(to, str(e))

        logger.info("Email %s sent to %s: %s", message.tag or "message", to, message.subject)
        return EmailResult.success(to, mime["Message-ID"])
