"""Database models"""

from patisserie.models.store import StoreAddress, UserAddress
from patisserie.models.user import User, UserRole
from patisserie.models.product import Product
from patisserie.models.order import (
    Order,
    OrderItem,
    OrderPayment,
    OrderDriverCancellation,
    OrderStatus,
    PaymentStatus,
    DeliveryType,
    OrderSource,
    PaymentMethodType,
    PaymentMethod,
    TERMINAL_STATUSES,
)
from patisserie.models.counter import Counter
from patisserie.models.audit import AuditLog

__all__ = [
    "StoreAddress",
    "UserAddress",
    "User",
    "UserRole",
    "Product",
    "Order",
    "OrderItem",
    "OrderPayment",
    "OrderDriverCancellation",
    "OrderStatus",
    "PaymentStatus",
    "DeliveryType",
    "OrderSource",
    "PaymentMethodType",
    "PaymentMethod",
    "TERMINAL_STATUSES",
    "Counter",
    "AuditLog",
]
