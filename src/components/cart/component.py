"""
Cart component - Cookie-backed cart.

Shell Layer - decodes the cart cookie, applies the pure cart
operations and re-encodes the result.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from urllib.parse import quote, unquote

from . import _impl
from .models import AddToCartInput, Cart, CartItem, CartOutput
from .ports import BuildLookupPort, ProductLookupPort

logger = logging.getLogger(__name__)


# --- Cookie codec ---


def decode_cart(raw: str | None) -> Cart:
    """Parse the cart cookie. Anything malformed yields an empty cart."""
    if not raw:
        return Cart()
    try:
        data = json.loads(unquote(raw))
        if not isinstance(data, list):
            raise ValueError("cart cookie is not a list")
    except ValueError as e:
        logger.warning("Discarding malformed cart cookie: %s", e)
        return Cart()

    items = []
    for entry in data:
        try:
            item = CartItem(
                id=str(entry["id"]),
                name=str(entry["name"]),
                price=float(entry["price"]),
                quantity=int(entry.get("quantity", 1)),
                type=entry.get("type", "product"),
                image=entry.get("image"),
                slug=entry.get("slug"),
                components=dict(entry.get("components") or {}),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Dropping malformed cart item: %s", e)
            continue
        if item.quantity < 1 or item.price < 0:
            logger.warning("Dropping cart item %s with invalid quantity or price", item.id)
            continue
        items.append(item)
    return Cart(items=items)


def encode_cart(cart: Cart) -> str:
    return quote(json.dumps([asdict(i) for i in cart.items], separators=(",", ":")))


def _ok(cart: Cart) -> CartOutput:
    return CartOutput(cart=cart, success=True, cookie_value=encode_cart(cart))


# --- Entry points ---


def run_get_cart(raw: str | None) -> CartOutput:
    return CartOutput(cart=decode_cart(raw), success=True)


def run_add_to_cart(
    raw: str | None,
    inp: AddToCartInput,
    products: ProductLookupPort,
    builds: BuildLookupPort,
) -> CartOutput:
    """Add a product or saved build, priced from the store."""
    cart = decode_cart(raw)
    if inp.quantity < 1:
        return CartOutput(cart=cart, error="Quantity must be at least 1", error_code="validation")

    if inp.product_id is not None:
        product = products.get_product_by_id(inp.product_id)
        if product is None or product.id is None:
            return CartOutput(cart=cart, error="Product not found", error_code="not_found")
        item = CartItem(
            id=_impl.product_item_id(product.id),
            name=product.title,
            price=product.price * inp.quantity,
            quantity=inp.quantity,
            type="product",
            image=product.image,
            slug=product.slug,
        )
    elif inp.build_slug:
        build = builds.get_by_slug(inp.build_slug)
        if build is None:
            return CartOutput(cart=cart, error="Build not found", error_code="not_found")
        item = CartItem(
            id=_impl.build_item_id(build.slug),
            name=build.name,
            price=build.total_price * inp.quantity,
            quantity=inp.quantity,
            type="build",
            slug=build.slug,
            components=dict(build.components),
        )
    else:
        return CartOutput(
            cart=cart, error="product_id or build_slug is required", error_code="validation"
        )

    return _ok(_impl.add_item(cart, item))


def run_update_quantity(raw: str | None, item_id: str, quantity: int) -> CartOutput:
    cart = decode_cart(raw)
    try:
        return _ok(_impl.update_quantity(cart, item_id, quantity))
    except ValueError as e:
        return CartOutput(cart=cart, error=str(e), error_code="validation")


def run_remove_item(raw: str | None, item_id: str) -> CartOutput:
    return _ok(_impl.remove_item(decode_cart(raw), item_id))


def run_clear_cart() -> CartOutput:
    return _ok(_impl.clear())
