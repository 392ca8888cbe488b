"""Order schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel

from patisserie.models.order import (
    DeliveryType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentMethodType,
    PaymentStatus,
)


class OrderItemCreate(BaseModel):
    """Cart line"""
    product_id: UUID
    quantity: int = 1
    price_cents: Optional[int] = None  # staff override; customers always pay the catalog price


class OrderCreate(BaseModel):
    """Create order request (customer checkout or staff entry)"""
    items: List[OrderItemCreate]
    payment_method_type: PaymentMethodType = PaymentMethodType.CASH
    order_source: OrderSource = OrderSource.APP
    delivery_type: DeliveryType = DeliveryType.DELIVERY
    is_deferred: bool = False
    shipping_address_id: Optional[UUID] = None
    nearby_store_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    """Status transition request"""
    status: OrderStatus


class PaymentCreate(BaseModel):
    """Add payment request"""
    amount_cents: int
    method: PaymentMethod = PaymentMethod.CASH


class UserSummary(BaseModel):
    id: UUID
    name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    id: UUID
    title: str
    category: Optional[str]
    image_url: Optional[str]
    ratings_average: Optional[float]

    class Config:
        from_attributes = True


class AddressResponse(BaseModel):
    id: UUID
    label: Optional[str]
    address: str
    city: Optional[str]
    phone: Optional[str]

    class Config:
        from_attributes = True


class StoreSummary(BaseModel):
    id: UUID
    name: str
    address: Optional[str]
    city: Optional[str]

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    """Order line in response"""
    product_id: UUID
    product: Optional[ProductSummary]
    quantity: int
    price_cents: int
    total_item_price_cents: int

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    """Payment entry in response"""
    id: UUID
    amount_cents: int
    method: PaymentMethod
    paid_at: datetime
    paid_by: Optional[UserSummary]

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order read model"""
    id: UUID
    order_number: int
    order_day: str
    status: OrderStatus
    status_name: str
    customer: Optional[UserSummary]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    driver: Optional[UserSummary]
    store: Optional[StoreSummary]
    shipping_address: Optional[AddressResponse]
    items: List[OrderItemResponse]
    notes: Optional[str]
    subtotal_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int
    paid_cents: int
    remaining_cents: int
    delivery_type: DeliveryType
    order_source: OrderSource
    payment_method_type: PaymentMethodType
    is_deferred: bool
    payment_status: PaymentStatus
    payments: List[PaymentResponse]
    canceled_by_drivers: List[UUID]
    admin_accepted_at: Optional[datetime]
    admin_completed_at: Optional[datetime]
    driver_accepted_at: Optional[datetime]
    driver_delivered_at: Optional[datetime]
    canceled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    """Order list"""
    items: List[OrderResponse]
    view: str
    limit: int
    offset: int


class OrderStatsResponse(BaseModel):
    """Dashboard counters; amounts in cents"""
    new: int
    pending: int
    pending_driver: int
    delivered: int
    completed: int
    cancelled: int
    total_sales_today: int
    total_sales_last_week: int
    total_items_sold_last_week: int
    distinct_products_last_week: int


class ErrorResponse(BaseModel):
    error: str
    message_key: str
    detail: str
    params: Dict[str, Any] = {}
