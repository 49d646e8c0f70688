"""
Orders component - Checkout, order tracking and back-office order handling.

Shell Layer - resolves builds and products, persists through the
repositories and sends the confirmation email.
"""

from __future__ import annotations

import logging
import random

from src.components.builds import SaveBuildInput, run_save_build
from src.components.builds.ports import BuildRepoPort
from src.components.cart.models import CartItem
from src.components.catalog.ports import CatalogRepoPort
from src.components.notifications import (
    OrderConfirmationInput,
    OrderEmailLine,
    run_send_order_confirmation,
)
from src.components.notifications.ports import EmailSenderPort
from src.core.ports.time import TimePort
from src.domain.entities import (
    DeliveryMethod,
    Order,
    OrderHistory,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    User,
)
from src.domain.policy import PolicyEngine
from src.rules.models import OrderRules

from ._impl import (
    build_snapshot,
    can_cancel,
    compute_statistics,
    generate_order_number,
    is_final,
    order_total,
    paginate,
    product_snapshot,
    validate_address,
)
from .addresses import run_save_address
from .models import (
    CheckoutItem,
    CreateOrderInput,
    DeliveryMethodInput,
    DeliveryMethodOutput,
    ListOrdersInput,
    OrderDetail,
    OrderOutput,
    OrderPage,
    OrderStatistics,
    TrackedBuild,
    TrackingInfo,
    TrackingOutput,
)
from .ports import AddressRepoPort, OrderRepoPort, ReferenceRepoPort

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """A checkout line could not be resolved."""

    def __init__(self, message: str, code: str = "validation") -> None:
        super().__init__(message)
        self.code = code


def checkout_item_from_cart(item: CartItem) -> CheckoutItem:
    """Map a cart cookie line onto a checkout line."""
    if item.type == "product":
        product_id = None
        if item.id.startswith("product-"):
            try:
                product_id = int(item.id.removeprefix("product-"))
            except ValueError:
                product_id = None
        return CheckoutItem(
            type="product", quantity=item.quantity, product_id=product_id, name=item.name
        )
    return CheckoutItem(
        type="build",
        quantity=item.quantity,
        slug=item.slug,
        name=item.name,
        components={k: str(v) for k, v in item.components.items() if v},
    )


def _resolve_line(
    item: CheckoutItem,
    user: User,
    builds: BuildRepoPort,
    catalog: CatalogRepoPort,
    time: TimePort,
    rng: random.Random | None,
    created: list[int],
) -> OrderItem:
    if item.quantity < 1:
        raise CheckoutError("Quantity must be at least 1")

    if item.type == "product":
        product = catalog.get_product_by_id(item.product_id) if item.product_id else None
        if product is None:
            raise CheckoutError("Product not found", "not_found")
        return OrderItem(
            quantity=item.quantity,
            price=round(product.price * item.quantity, 2),
            build_snapshot=product_snapshot(product),
        )

    build = None
    if item.build_id is not None:
        build = builds.get_by_id(item.build_id)
    elif item.slug:
        build = builds.get_by_slug(item.slug)
    elif item.components:
        saved = run_save_build(
            SaveBuildInput(name=item.name or "Build", components=item.components),
            user,
            builds,
            catalog,
            time,
            rng,
        )
        if not saved.success:
            raise CheckoutError(saved.error or "Could not save build")
        build = saved.build
        assert build is not None and build.id is not None
        created.append(build.id)
    if build is None or build.id is None:
        raise CheckoutError("Build not found", "not_found")

    return OrderItem(
        build_id=build.id,
        quantity=item.quantity,
        price=round(build.total_price * item.quantity, 2),
        build_snapshot=build_snapshot(build),
    )


def order_confirmation_input(
    order: Order, customer_email: str, delivery: DeliveryMethod | None, customer_name: str | None = None
) -> OrderConfirmationInput:
    """Summarize a stored order for the confirmation email."""
    return OrderConfirmationInput(
        order_number=order.order_number,
        customer_email=customer_email,
        created_at=order.created_at,
        lines=[
            OrderEmailLine(
                name=str(item.build_snapshot.get("name", "Item")),
                quantity=item.quantity,
                price=item.price,
            )
            for item in order.items
        ],
        delivery_name=delivery.name if delivery else None,
        delivery_price=delivery.price if delivery else 0.0,
        total_price=order.total_price,
        customer_name=customer_name,
    )


def _send_confirmation(
    order: Order, user: User, delivery: DeliveryMethod, sender: EmailSenderPort
) -> None:
    name = None
    if user.profile and user.profile.first_name:
        name = user.profile.first_name
    out = run_send_order_confirmation(
        order_confirmation_input(order, user.email, delivery, name), sender
    )
    if not out.success:
        logger.error("Order %s placed but confirmation email failed: %s", order.order_number, out.error)


def run_create_order(
    inp: CreateOrderInput,
    user: User,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    addresses: AddressRepoPort,
    builds: BuildRepoPort,
    catalog: CatalogRepoPort,
    sender: EmailSenderPort,
    time: TimePort,
    rng: random.Random | None = None,
) -> OrderOutput:
    assert user.id is not None
    if not inp.items:
        return OrderOutput(error="Cart is empty", error_code="validation")

    delivery = refs.get_delivery_method(inp.delivery_method_id)
    if delivery is None or not delivery.is_active:
        return OrderOutput(error="Delivery method not available", error_code="validation")

    if inp.payment_method_id is not None:
        payment = refs.get_payment_method(inp.payment_method_id)
        if payment is None or not payment.is_active:
            return OrderOutput(error="Payment method not available", error_code="validation")

    address_id = inp.delivery_address_id
    if inp.new_address is not None:
        if validate_address(inp.new_address):
            return OrderOutput(error="Invalid delivery address", error_code="validation")
    elif address_id is not None:
        address = addresses.get(address_id)
        if address is None or address.user_id != user.id:
            return OrderOutput(error="Delivery address not found", error_code="not_found")

    created: list[int] = []
    try:
        items = [
            _resolve_line(item, user, builds, catalog, time, rng, created) for item in inp.items
        ]
    except CheckoutError as e:
        # drop builds saved for earlier lines
        for build_id in created:
            builds.delete(build_id)
        if created:
            logger.info("Checkout failed, removed %d build(s) saved for it", len(created))
        return OrderOutput(error=str(e), error_code=e.code)

    if inp.new_address is not None:
        saved_address = run_save_address(user, inp.new_address, addresses, time)
        assert saved_address.address is not None
        address_id = saved_address.address.id

    now = time.now_utc()
    order = Order(
        order_number=generate_order_number(now),
        user_id=user.id,
        status_id=1,
        delivery_method_id=delivery.id,
        payment_method_id=inp.payment_method_id,
        delivery_address_id=address_id,
        comment=(inp.comment or "").strip() or None,
        total_price=order_total([i.price for i in items], delivery.price),
        created_at=now,
        updated_at=now,
        items=items,
        history=[
            OrderHistory(
                order_id=0, status_id=1, comment="Order created", user_id=user.id, created_at=now
            )
        ],
    )
    saved = orders.create(order)
    logger.info(
        "Order %s created for user %s: %d items, total %.2f",
        saved.order_number,
        user.id,
        len(items),
        saved.total_price,
    )

    _send_confirmation(saved, user, delivery, sender)
    return OrderOutput(order=saved, success=True)


# --- Customer views ---


def _detail(order: Order, refs: ReferenceRepoPort, addresses: AddressRepoPort) -> OrderDetail:
    return OrderDetail(
        order=order,
        status=refs.get_status(order.status_id),
        delivery_method=(
            refs.get_delivery_method(order.delivery_method_id) if order.delivery_method_id else None
        ),
        payment_method=(
            refs.get_payment_method(order.payment_method_id) if order.payment_method_id else None
        ),
        address=addresses.get(order.delivery_address_id) if order.delivery_address_id else None,
    )


def run_get_order(
    user: User,
    order_id: int,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    addresses: AddressRepoPort,
    policy: PolicyEngine,
) -> OrderOutput:
    order = orders.get_by_id(order_id)
    if order is None:
        return OrderOutput(error="Order not found", error_code="not_found")
    if not policy.can_view_order(user, order):
        return OrderOutput(error="Access denied", error_code="forbidden")
    return OrderOutput(order=order, detail=_detail(order, refs, addresses), success=True)


def run_list_user_orders(user: User, orders: OrderRepoPort) -> list[Order]:
    assert user.id is not None
    return orders.list_by_user(user.id)


def run_get_user_order_by_number(
    user: User,
    order_number: str,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    addresses: AddressRepoPort,
    policy: PolicyEngine,
) -> OrderOutput:
    order = orders.get_by_number(order_number.strip().upper())
    if order is None or not policy.can_view_order(user, order):
        # Someone else's order number is indistinguishable from a wrong one
        return OrderOutput(error="Order not found", error_code="not_found")
    return OrderOutput(order=order, detail=_detail(order, refs, addresses), success=True)


def run_track_order(
    order_number: str, orders: OrderRepoPort, refs: ReferenceRepoPort
) -> TrackingOutput:
    order = orders.get_by_number(order_number.strip().upper())
    if order is None:
        return TrackingOutput(error="Order not found", error_code="not_found")

    build = None
    if order.items:
        snapshot = order.items[0].build_snapshot
        build = TrackedBuild(
            name=str(snapshot.get("name", "")),
            total_price=float(snapshot.get("total_price", order.items[0].price)),
        )
    return TrackingOutput(
        tracking=TrackingInfo(
            order_number=order.order_number,
            status=refs.get_status(order.status_id),
            total_price=order.total_price,
            created_at=order.created_at,
            updated_at=order.updated_at,
            build=build,
        ),
        success=True,
    )


def _change_status(
    order: Order,
    status_id: int,
    comment: str | None,
    actor: User | None,
    orders: OrderRepoPort,
    time: TimePort,
) -> Order:
    assert order.id is not None
    now = time.now_utc()
    orders.update_status(order.id, status_id, now)
    orders.add_history(
        OrderHistory(
            order_id=order.id,
            status_id=status_id,
            comment=comment,
            user_id=actor.id if actor else None,
            created_at=now,
        )
    )
    logger.info("Order %s: status %s -> %s", order.order_number, order.status_id, status_id)
    return orders.get_by_id(order.id) or order


def run_complete_payment(
    user: User,
    order_id: int,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    rules: OrderRules,
    time: TimePort,
    status_id: int | None = None,
) -> OrderOutput:
    """Move the customer's own order to Paid; no other status is reachable here."""
    if status_id is None:
        status_id = rules.statuses.paid
    if refs.get_status(status_id) is None:
        return OrderOutput(error="Unknown order status", error_code="validation")
    if status_id != rules.statuses.paid:
        return OrderOutput(error="Payment can only mark an order as paid", error_code="validation")

    order = orders.get_by_id(order_id)
    if order is None or order.user_id != user.id:
        return OrderOutput(error="Order not found", error_code="not_found")
    if is_final(order, rules):
        return OrderOutput(error="Order is already closed", error_code="conflict")
    updated = _change_status(order, status_id, "Payment completed", user, orders, time)
    return OrderOutput(order=updated, success=True)


def run_cancel_order(
    user: User,
    order_id: int,
    orders: OrderRepoPort,
    rules: OrderRules,
    time: TimePort,
) -> OrderOutput:
    order = orders.get_by_id(order_id)
    if order is None or order.user_id != user.id:
        return OrderOutput(error="Order not found", error_code="not_found")
    if not can_cancel(order, rules):
        return OrderOutput(error="Order can no longer be cancelled", error_code="conflict")
    updated = _change_status(
        order, rules.statuses.cancelled, "Order cancelled by customer", user, orders, time
    )
    return OrderOutput(order=updated, success=True)


# --- Back office ---


def run_list_orders(inp: ListOrdersInput, orders: OrderRepoPort) -> OrderPage:
    limit = max(1, inp.limit)
    page = max(1, inp.page)
    search = inp.search.strip() if inp.search else None
    found, total = orders.search(inp.status_id, search, (page - 1) * limit, limit)
    _, total_pages = paginate(total, page, limit)
    return OrderPage(orders=found, total_items=total, total_pages=total_pages, current_page=page)


def run_update_status(
    actor: User,
    order_id: int,
    status_id: int,
    comment: str | None,
    orders: OrderRepoPort,
    refs: ReferenceRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> OrderOutput:
    if not policy.is_manager(actor):
        return OrderOutput(error="Access denied", error_code="forbidden")
    if refs.get_status(status_id) is None:
        return OrderOutput(error="Unknown order status", error_code="validation")
    order = orders.get_by_id(order_id)
    if order is None:
        return OrderOutput(error="Order not found", error_code="not_found")
    updated = _change_status(order, status_id, (comment or "").strip() or None, actor, orders, time)
    return OrderOutput(order=updated, success=True)


def run_delivery_orders(orders: OrderRepoPort, rules: OrderRules) -> list[Order]:
    return orders.list_by_statuses(rules.delivery_statuses)


def run_order_statistics(orders: OrderRepoPort, rules: OrderRules) -> OrderStatistics:
    return compute_statistics(orders.list_all(), rules)


# --- Reference data ---


def run_list_statuses(refs: ReferenceRepoPort) -> list[OrderStatus]:
    return refs.list_statuses()


def run_list_delivery_methods(
    refs: ReferenceRepoPort, active_only: bool = True
) -> list[DeliveryMethod]:
    return refs.list_delivery_methods(active_only=active_only)


def run_list_payment_methods(refs: ReferenceRepoPort) -> list[PaymentMethod]:
    return refs.list_payment_methods(active_only=True)


def run_save_delivery_method(
    inp: DeliveryMethodInput, refs: ReferenceRepoPort, method_id: int | None = None
) -> DeliveryMethodOutput:
    name = inp.name.strip()
    if not name:
        return DeliveryMethodOutput(error="Name is required", error_code="validation")
    if inp.price < 0:
        return DeliveryMethodOutput(error="Price cannot be negative", error_code="validation")

    if method_id is not None and refs.get_delivery_method(method_id) is None:
        return DeliveryMethodOutput(error="Delivery method not found", error_code="not_found")

    saved = refs.save_delivery_method(
        DeliveryMethod(
            id=method_id,
            name=name,
            description=inp.description,
            price=round(inp.price, 2),
            estimated_days=inp.estimated_days,
            is_active=inp.is_active,
        )
    )
    return DeliveryMethodOutput(method=saved, success=True)


def run_delete_delivery_method(method_id: int, refs: ReferenceRepoPort) -> DeliveryMethodOutput:
    if not refs.delete_delivery_method(method_id):
        return DeliveryMethodOutput(error="Delivery method not found", error_code="not_found")
    return DeliveryMethodOutput(success=True)
