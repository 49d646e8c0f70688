"""
Notifications component - Verification codes and order confirmations by email.
"""

from ._impl import format_price, render_order_confirmation, render_verification_code
from .component import (
    run_preview_order_confirmation,
    run_send_email,
    run_send_order_confirmation,
    run_send_verification_code,
)
from .models import NotificationOutput, OrderConfirmationInput, OrderEmailLine, RenderedEmail
from .ports import EmailSenderPort

__all__ = [
    # Entry points
    "run_send_verification_code",
    "run_send_order_confirmation",
    "run_preview_order_confirmation",
    "run_send_email",
    # Rendering
    "format_price",
    "render_verification_code",
    "render_order_confirmation",
    # Models
    "NotificationOutput",
    "OrderConfirmationInput",
    "OrderEmailLine",
    "RenderedEmail",
    # Ports
    "EmailSenderPort",
]
