"""
Cart component - Cookie-backed cart with quantity-aware pricing.
"""

from ._impl import add_item, is_in_cart, items_count, remove_item, total, update_quantity
from .component import (
    decode_cart,
    encode_cart,
    run_add_to_cart,
    run_clear_cart,
    run_get_cart,
    run_remove_item,
    run_update_quantity,
)
from .models import AddToCartInput, Cart, CartItem, CartOutput
from .ports import BuildLookupPort, ProductLookupPort

__all__ = [
    # Entry points
    "run_get_cart",
    "run_add_to_cart",
    "run_update_quantity",
    "run_remove_item",
    "run_clear_cart",
    # Cookie codec
    "decode_cart",
    "encode_cart",
    # Pure operations
    "add_item",
    "remove_item",
    "update_quantity",
    "total",
    "items_count",
    "is_in_cart",
    # Models
    "AddToCartInput",
    "Cart",
    "CartItem",
    "CartOutput",
    # Ports
    "ProductLookupPort",
    "BuildLookupPort",
]
