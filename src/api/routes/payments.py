from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.repos import SQLiteOrderRepo, SQLiteReferenceRepo
from src.api.deps import (
    get_clock,
    get_current_user,
    get_order_repo,
    get_payment_gateway,
    get_reference_repo,
    get_rules,
)
from src.api.errors import raise_for_output
from src.api.schemas import PaymentStatusRequest, ProcessPaymentRequest, QRPayloadRequest
from src.components.payments import (
    CardData,
    ProcessPaymentInput,
    run_check_qr_status,
    run_create_qr_payload,
    run_process_payment,
    run_update_payment_status,
)
from src.domain.entities import User
from src.rules.models import Rules

router = APIRouter()


def _payload(result: Any) -> dict[str, Any]:
    data = asdict(result)
    data.pop("error", None)
    data.pop("error_code", None)
    return data


@router.post("/process")
def process_payment(
    req: ProcessPaymentRequest,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    gateway: PaymentStubAdapter = Depends(get_payment_gateway),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    card = CardData(**req.card.model_dump()) if req.card else None
    inp = ProcessPaymentInput(order_id=req.order_id, method=req.method, amount=req.amount, card=card)
    result = run_process_payment(inp, current_user, orders, refs, gateway, rules.orders, clock)
    raise_for_output(result)
    return _payload(result)


@router.post("/qrcode")
def create_qr_payload(
    req: QRPayloadRequest,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    result = run_create_qr_payload(current_user, req.order_id, req.payment_id, orders, refs, clock)
    raise_for_output(result)
    return _payload(result)


@router.get("/status/{payment_id}")
def check_qr_status(
    payment_id: str,
    current_user: User = Depends(get_current_user),
    gateway: PaymentStubAdapter = Depends(get_payment_gateway),
) -> dict[str, Any]:
    result = run_check_qr_status(payment_id, gateway)
    raise_for_output(result)
    return _payload(result)


@router.post("/update-status")
def update_payment_status(
    req: PaymentStatusRequest,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    gateway: PaymentStubAdapter = Depends(get_payment_gateway),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    result = run_update_payment_status(
        current_user, req.order_id, req.payment_id, orders, refs, gateway, rules.orders, clock
    )
    raise_for_output(result)
    return _payload(result)
