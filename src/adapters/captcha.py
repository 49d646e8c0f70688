"""
Captcha adapters.

RecaptchaAdapter posts the client token to Google's siteverify
endpoint. Any transport or decoding error fails closed.
"""

from __future__ import annotations

import logging

import httpx

from src.core.ports.captcha import CaptchaResult

logger = logging.getLogger(__name__)

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaAdapter:
    def __init__(
        self,
        secret: str,
        verify_url: str = RECAPTCHA_VERIFY_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout
        self._transport = transport

    def verify(self, token: str, remote_ip: str | None = None) -> CaptchaResult:
        if not token:
            return CaptchaResult(success=False, error_codes=["missing-input-response"])

        data = {"secret": self.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.verify_url, data=data)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("reCAPTCHA verification request failed: %s", e)
            return CaptchaResult(success=False, error_codes=["request-failed"])

        result = CaptchaResult(
            success=bool(payload.get("success")),
            score=payload.get("score"),
            error_codes=list(payload.get("error-codes", [])),
        )
        if not result.success:
            logger.info("reCAPTCHA rejected token: %s", result.error_codes)
        return result


class DevCaptchaAdapter:
    """Accepts any non-empty token. Used when no reCAPTCHA secret is configured."""

    def verify(self, token: str, remote_ip: str | None = None) -> CaptchaResult:
        if not token:
            return CaptchaResult(success=False, error_codes=["missing-input-response"])
        return CaptchaResult(success=True, score=1.0)
