import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from src.adapters.sqlite.repos import SQLiteAddressRepo, SQLiteOrderRepo, SQLiteReferenceRepo
from src.api.deps import (
    client_ip,
    get_address_repo,
    get_captcha,
    get_current_user,
    get_email_sender,
    get_kv_store,
    get_order_repo,
    get_policy,
    get_reference_repo,
    require_admin,
    require_manager,
)
from src.api.errors import raise_for_output
from src.api.schemas import CaptchaVerifyRequest, EmailSendRequest, OrderEmailRequest
from src.components.notifications import (
    run_preview_order_confirmation,
    run_send_email,
    run_send_order_confirmation,
)
from src.components.orders import OrderDetail, order_confirmation_input, run_get_order
from src.core.ports.captcha import CaptchaPort
from src.core.ports.kv import KVStorePort
from src.domain.entities import User
from src.domain.policy import PolicyEngine

logger = logging.getLogger(__name__)

captcha_router = APIRouter()
email_router = APIRouter()
health_router = APIRouter()


# --- Captcha ---


@captcha_router.post("/verify")
def verify_captcha(
    req: CaptchaVerifyRequest,
    request: Request,
    captcha: CaptchaPort = Depends(get_captcha),
) -> dict[str, Any]:
    result = captcha.verify(req.token, client_ip(request))
    return {"success": result.success, "score": result.score, "error_codes": result.error_codes}


# --- Email ---


def _order_detail(
    user: User,
    order_id: int,
    orders: SQLiteOrderRepo,
    refs: SQLiteReferenceRepo,
    addresses: SQLiteAddressRepo,
    policy: PolicyEngine,
) -> OrderDetail:
    result = run_get_order(user, order_id, orders, refs, addresses, policy)
    raise_for_output(result)
    assert result.detail is not None
    return result.detail


@email_router.post("")
def send_email(
    req: EmailSendRequest,
    admin: User = Depends(require_admin),
    sender: Any = Depends(get_email_sender),
) -> dict[str, Any]:
    result = run_send_email(req.to, req.subject, req.html, req.text, sender)
    raise_for_output(result)
    return {"success": True, "message_id": result.message_id}


@email_router.post("/order-confirmation")
def resend_order_confirmation(
    req: OrderEmailRequest,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    policy: PolicyEngine = Depends(get_policy),
    sender: Any = Depends(get_email_sender),
) -> dict[str, Any]:
    detail = _order_detail(current_user, req.order_id, orders, refs, addresses, policy)
    recipient = detail.order.customer_email or current_user.email
    result = run_send_order_confirmation(
        order_confirmation_input(detail.order, recipient, detail.delivery_method), sender
    )
    raise_for_output(result)
    return {"success": True, "message_id": result.message_id}


@email_router.get("/preview/order-confirmation", response_class=HTMLResponse)
def preview_order_confirmation(
    order_id: int,
    manager: User = Depends(require_manager),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> str:
    detail = _order_detail(manager, order_id, orders, refs, addresses, policy)
    recipient = detail.order.customer_email or ""
    return run_preview_order_confirmation(
        order_confirmation_input(detail.order, recipient, detail.delivery_method)
    )


# --- Health ---


@health_router.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}


@health_router.get("/api/health/redis")
def kv_health(kv: KVStorePort = Depends(get_kv_store)) -> dict[str, Any]:
    started = time.perf_counter()
    healthy = kv.ping()
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if not healthy:
        logger.warning("Key-value store ping failed")
    return {
        "status": "healthy" if healthy else "unhealthy",
        "backend": type(kv).__name__,
        "latency_ms": latency_ms,
    }
