"""
Notifications component - Message rendering (Functional Core).

Pure functions that turn a verification code or an order summary
into subject, HTML body and plain text body. Every dynamic value is
escaped before it lands in HTML.
"""

from __future__ import annotations

from html import escape

from .models import OrderConfirmationInput, RenderedEmail

BRAND = "OnlyPC"

_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="margin:0;background:#0D0E19;font-family:Arial,sans-serif;color:#E0E0E9;">
<div style="max-width:600px;margin:0 auto;padding:32px;">
<h1 style="color:#4F92FF;font-size:24px;">{brand}</h1>
<div style="background:#212235;border:2px solid #343656;border-radius:16px;padding:32px;">
{content}
</div>
<p style="color:#7E808F;font-size:12px;margin-top:24px;">{footer}</p>
</div>
</body>
</html>"""


def format_price(amount: float) -> str:
    """1234.5 -> '1 234.50'"""
    return f"{amount:,.2f}".replace(",", " ")


def _layout(title: str, content: str) -> str:
    return _LAYOUT.format(
        title=escape(title),
        brand=BRAND,
        content=content,
        footer=f"This message was sent automatically by {BRAND}. Please do not reply.",
    )


def render_verification_code(code: str, ttl_minutes: int) -> RenderedEmail:
    subject = f"{BRAND} sign-in code: {code}"
    content = (
        "<p>Use this code to finish signing in:</p>"
        f'<p style="font-size:32px;letter-spacing:8px;color:#9D6FFF;"><strong>{escape(code)}</strong></p>'
        f"<p>The code is valid for {ttl_minutes} minutes.</p>"
        "<p>If you did not try to sign in, you can ignore this email.</p>"
    )
    text = (
        f"Your {BRAND} sign-in code: {code}\n"
        f"The code is valid for {ttl_minutes} minutes.\n"
        "If you did not try to sign in, you can ignore this email.\n"
    )
    return RenderedEmail(subject=subject, html=_layout(subject, content), text=text)


def render_order_confirmation(inp: OrderConfirmationInput) -> RenderedEmail:
    subject = f"{BRAND} order {inp.order_number} confirmed"
    greeting = f"Hello, {inp.customer_name}!" if inp.customer_name else "Hello!"

    rows = []
    text_rows = []
    for line in inp.lines:
        rows.append(
            "<tr>"
            f"<td style=\"padding:8px 0;\">{escape(line.name)}</td>"
            f"<td style=\"padding:8px;text-align:center;\">{line.quantity}</td>"
            f"<td style=\"padding:8px 0;text-align:right;\">{format_price(line.price)}</td>"
            "</tr>"
        )
        text_rows.append(f"- {line.name} x{line.quantity}: {format_price(line.price)}")

    delivery_label = escape(inp.delivery_name or "Delivery")
    content = (
        f"<p>{escape(greeting)}</p>"
        f"<p>Thank you for your order <strong>{escape(inp.order_number)}</strong> "
        f"placed on {inp.created_at:%d.%m.%Y %H:%M}.</p>"
        '<table style="width:100%;border-collapse:collapse;">'
        "<tr><th style=\"text-align:left;\">Item</th><th>Qty</th>"
        "<th style=\"text-align:right;\">Price</th></tr>"
        + "".join(rows)
        + f"<tr><td colspan=\"2\" style=\"padding:8px 0;\">{delivery_label}</td>"
        f"<td style=\"text-align:right;\">{format_price(inp.delivery_price)}</td></tr>"
        f"<tr><td colspan=\"2\" style=\"padding:8px 0;\"><strong>Total</strong></td>"
        f"<td style=\"text-align:right;\"><strong>{format_price(inp.total_price)}</strong></td></tr>"
        "</table>"
        "<p>We will let you know when the status of your order changes.</p>"
    )

    text = "\n".join(
        [
            greeting,
            f"Thank you for your order {inp.order_number} placed on "
            f"{inp.created_at:%d.%m.%Y %H:%M}.",
            "",
            *text_rows,
            f"{inp.delivery_name or 'Delivery'}: {format_price(inp.delivery_price)}",
            f"Total: {format_price(inp.total_price)}",
            "",
        ]
    )
    return RenderedEmail(subject=subject, html=_layout(subject, content), text=text)
