"""
Cart - Functional Core.

Quantity-aware price aggregation. Every operation returns a new Cart.
"""

from __future__ import annotations

from dataclasses import replace

from .models import Cart, CartItem


def add_item(cart: Cart, item: CartItem) -> Cart:
    """Merge with an existing line of the same id, keeping its unit price."""
    items = []
    merged = False
    for existing in cart.items:
        if existing.id == item.id:
            quantity = existing.quantity + item.quantity
            items.append(replace(existing, quantity=quantity, price=existing.unit_price * quantity))
            merged = True
        else:
            items.append(existing)
    if not merged:
        items.append(item)
    return Cart(items=items)


def remove_item(cart: Cart, item_id: str) -> Cart:
    return Cart(items=[i for i in cart.items if i.id != item_id])


def update_quantity(cart: Cart, item_id: str, quantity: int) -> Cart:
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    return Cart(
        items=[
            replace(i, quantity=quantity, price=i.unit_price * quantity) if i.id == item_id else i
            for i in cart.items
        ]
    )


def clear() -> Cart:
    return Cart()


def total(cart: Cart) -> float:
    return round(sum(i.unit_price * i.quantity for i in cart.items), 2)


def items_count(cart: Cart) -> int:
    return sum(i.quantity for i in cart.items)


def is_in_cart(cart: Cart, item_id: str) -> bool:
    return any(str(i.id) == str(item_id) for i in cart.items)


def product_item_id(product_id: int) -> str:
    return f"product-{product_id}"


def build_item_id(slug: str) -> str:
    return f"build-{slug}"
