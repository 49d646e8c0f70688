"""
Orders component - Checkout, order history, tracking and delivery addresses.
"""

from ._impl import compute_statistics, generate_order_number, is_final
from .addresses import (
    run_delete_address,
    run_list_addresses,
    run_save_address,
    run_set_default_address,
)
from .component import (
    CheckoutError,
    checkout_item_from_cart,
    order_confirmation_input,
    run_cancel_order,
    run_complete_payment,
    run_create_order,
    run_delete_delivery_method,
    run_delivery_orders,
    run_get_order,
    run_get_user_order_by_number,
    run_list_delivery_methods,
    run_list_orders,
    run_list_payment_methods,
    run_list_statuses,
    run_list_user_orders,
    run_order_statistics,
    run_save_delivery_method,
    run_track_order,
    run_update_status,
)
from .models import (
    AddressInput,
    AddressOutput,
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

__all__ = [
    # Entry points
    "run_create_order",
    "run_get_order",
    "run_list_user_orders",
    "run_get_user_order_by_number",
    "run_track_order",
    "run_complete_payment",
    "run_cancel_order",
    "run_list_orders",
    "run_update_status",
    "run_delivery_orders",
    "run_order_statistics",
    "run_list_statuses",
    "run_list_delivery_methods",
    "run_list_payment_methods",
    "run_save_delivery_method",
    "run_delete_delivery_method",
    "run_list_addresses",
    "run_save_address",
    "run_set_default_address",
    "run_delete_address",
    # Helpers
    "CheckoutError",
    "checkout_item_from_cart",
    "order_confirmation_input",
    "compute_statistics",
    "generate_order_number",
    "is_final",
    # Models
    "AddressInput",
    "AddressOutput",
    "CheckoutItem",
    "CreateOrderInput",
    "DeliveryMethodInput",
    "DeliveryMethodOutput",
    "ListOrdersInput",
    "OrderDetail",
    "OrderOutput",
    "OrderPage",
    "OrderStatistics",
    "TrackedBuild",
    "TrackingInfo",
    "TrackingOutput",
    # Ports
    "AddressRepoPort",
    "OrderRepoPort",
    "ReferenceRepoPort",
]
