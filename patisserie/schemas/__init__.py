"""Pydantic schemas for request/response validation"""

from patisserie.schemas.auth import (
    Token,
    UserResponse,
)
from patisserie.schemas.order import (
    OrderItemCreate,
    OrderCreate,
    OrderStatusUpdate,
    PaymentCreate,
    OrderItemResponse,
    PaymentResponse,
    OrderResponse,
    OrderListResponse,
    OrderStatsResponse,
    ErrorResponse,
)

__all__ = [
    "Token",
    "UserResponse",
    "OrderItemCreate",
    "OrderCreate",
    "OrderStatusUpdate",
    "PaymentCreate",
    "OrderItemResponse",
    "PaymentResponse",
    "OrderResponse",
    "OrderListResponse",
    "OrderStatsResponse",
    "ErrorResponse",
]
