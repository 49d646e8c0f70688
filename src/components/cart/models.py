"""
Cart component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

CartItemType = Literal["build", "product"]


@dataclass
class CartItem:
    """
    One cart line.

    price is the line total (unit price * quantity), not the unit price.
    """

    id: str
    name: str
    price: float
    quantity: int = 1
    type: CartItemType = "product"
    image: str | None = None
    slug: str | None = None
    # build items: category_slug -> product_slug
    components: dict[str, Any] = field(default_factory=dict)

    @property
    def unit_price(self) -> float:
        return self.price / self.quantity if self.quantity else self.price


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)


# --- Input Models ---


@dataclass(frozen=True)
class AddToCartInput:
    """Either product_id or build_slug must be given."""

    product_id: int | None = None
    build_slug: str | None = None
    quantity: int = 1


# --- Output Models ---


@dataclass
class CartOutput:
    cart: Cart = field(default_factory=Cart)
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    # re-encoded cookie value; None means leave the cookie untouched
    cookie_value: str | None = None
