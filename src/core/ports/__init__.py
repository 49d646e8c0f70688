# onlypc - Ports (Protocol interfaces)
# Adapters implement these; components depend only on the protocols

from src.core.ports.captcha import CaptchaPort, CaptchaResult
from src.core.ports.email import EmailAddress, EmailMessage, EmailPort, EmailResult, EmailStatus
from src.core.ports.kv import KVStorePort
from src.core.ports.payment import PaymentGatewayPort, PaymentResult
from src.core.ports.time import TimePort

__all__ = [
    "CaptchaPort",
    "CaptchaResult",
    "EmailAddress",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    "KVStorePort",
    "PaymentGatewayPort",
    "PaymentResult",
    "TimePort",
]
