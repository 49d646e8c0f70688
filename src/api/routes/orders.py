from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status

from src.adapters.sqlite.repos import (
    SQLiteAddressRepo,
    SQLiteBuildRepo,
    SQLiteCatalogRepo,
    SQLiteOrderRepo,
    SQLiteReferenceRepo,
)
from src.api.deps import (
    get_address_repo,
    get_build_repo,
    get_catalog_repo,
    get_clock,
    get_current_user,
    get_email_sender,
    get_order_repo,
    get_policy,
    get_reference_repo,
    get_rules,
)
from src.api.errors import raise_for_output
from src.api.schemas import CompletePaymentRequest, CreateOrderRequest
from src.components.cart import decode_cart
from src.components.orders import (
    AddressInput,
    CheckoutItem,
    CreateOrderInput,
    checkout_item_from_cart,
    run_cancel_order,
    run_complete_payment,
    run_create_order,
    run_get_order,
    run_list_delivery_methods,
    run_list_payment_methods,
    run_list_statuses,
    run_list_user_orders,
    run_track_order,
)
from src.domain.entities import DeliveryMethod, Order, OrderStatus, PaymentMethod, User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
def create_order(
    req: CreateOrderRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    builds: SQLiteBuildRepo = Depends(get_build_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    sender: Any = Depends(get_email_sender),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Order:
    """Check out the given lines, or the cart cookie when no lines are sent."""
    from_cart = req.items is None
    if req.items is not None:
        items = [CheckoutItem(**i.model_dump()) for i in req.items]
    else:
        cart = decode_cart(request.cookies.get(rules.cookies.cart))
        items = [checkout_item_from_cart(i) for i in cart.items]

    inp = CreateOrderInput(
        items=items,
        delivery_method_id=req.delivery_method_id,
        payment_method_id=req.payment_method_id,
        delivery_address_id=req.delivery_address_id,
        new_address=AddressInput(**req.new_address.model_dump()) if req.new_address else None,
        comment=req.comment,
    )
    result = run_create_order(
        inp, current_user, orders, refs, addresses, builds, catalog, sender, clock
    )
    raise_for_output(result)
    assert result.order is not None

    if from_cart:
        response.delete_cookie(key=rules.cookies.cart)
    return result.order


@router.get("", response_model=list[Order])
def list_my_orders(
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
) -> list[Order]:
    return run_list_user_orders(current_user, orders)


# --- Reference lists ---


@router.get("/statuses", response_model=list[OrderStatus])
def list_statuses(refs: SQLiteReferenceRepo = Depends(get_reference_repo)) -> list[OrderStatus]:
    return run_list_statuses(refs)


@router.get("/delivery-methods", response_model=list[DeliveryMethod])
def list_delivery_methods(
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> list[DeliveryMethod]:
    return run_list_delivery_methods(refs)


@router.get("/payment-methods", response_model=list[PaymentMethod])
def list_payment_methods(
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> list[PaymentMethod]:
    return run_list_payment_methods(refs)


@router.get("/track/{order_number}")
def track_order(
    order_number: str,
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
) -> dict[str, Any]:
    """Public order status lookup by number."""
    result = run_track_order(order_number, orders, refs)
    raise_for_output(result)
    assert result.tracking is not None
    return asdict(result.tracking)


# --- Single order ---


@router.get("/{order_id}")
def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    addresses: SQLiteAddressRepo = Depends(get_address_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    result = run_get_order(current_user, order_id, orders, refs, addresses, policy)
    raise_for_output(result)
    assert result.detail is not None
    return asdict(result.detail)


@router.post("/{order_id}/complete-payment", response_model=Order)
def complete_payment(
    order_id: int,
    req: CompletePaymentRequest | None = None,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    refs: SQLiteReferenceRepo = Depends(get_reference_repo),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Order:
    result = run_complete_payment(
        current_user,
        order_id,
        orders,
        refs,
        rules.orders,
        clock,
        status_id=req.status_id if req else None,
    )
    raise_for_output(result)
    assert result.order is not None
    return result.order


@router.post("/{order_id}/cancel", response_model=Order)
def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Order:
    result = run_cancel_order(current_user, order_id, orders, rules.orders, clock)
    raise_for_output(result)
    assert result.order is not None
    return result.order
