"""Order services: lifecycle, payments, numbering, statistics"""

from patisserie.services.counter import next_daily_order_number
from patisserie.services.payments import add_payment, derive_payment_status, recompute_payment_status
from patisserie.services.queries import get_order_for_actor, list_orders, load_order
from patisserie.services.lifecycle import (
    TRANSITIONS,
    CartItemInput,
    CreateOrderInput,
    accept_order_by_driver,
    apply_status_change,
    cancel_order,
    create_order,
    record_driver_cancellation,
    transition_order,
)
from patisserie.services.stats import OrderStats, compute_stats

__all__ = [
    "next_daily_order_number",
    "add_payment",
    "derive_payment_status",
    "recompute_payment_status",
    "get_order_for_actor",
    "list_orders",
    "load_order",
    "TRANSITIONS",
    "CartItemInput",
    "CreateOrderInput",
    "accept_order_by_driver",
    "apply_status_change",
    "cancel_order",
    "create_order",
    "record_driver_cancellation",
    "transition_order",
    "OrderStats",
    "compute_stats",
]
