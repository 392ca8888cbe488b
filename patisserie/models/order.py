"""Order models"""

import enum
import uuid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from patisserie.clock import utcnow
from patisserie.database import Base


class OrderStatus(enum.IntEnum):
    """Order lifecycle states, persisted as integers"""
    NEW = 0
    ADMIN_ACCEPTED = 1
    TRANSIT = 2
    DELIVERED = 3
    COMPLETED = 4
    CANCELLED = 5

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset([OrderStatus.COMPLETED, OrderStatus.CANCELLED])


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class DeliveryType(str, enum.Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class OrderSource(str, enum.Enum):
    APP = "app"
    PHONE = "phone"
    IN_STORE = "in_store"


class PaymentMethodType(str, enum.Enum):
    CARD = "card"
    CASH = "cash"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"


class Order(Base):
    """Customer order tracked through fulfilment and payment"""
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("order_day", "order_number", name="uq_orders_day_number"),
        Index("ix_orders_store_status", "nearby_store_id", "status"),
        CheckConstraint("paid_cents <= total_cents", name="ck_orders_paid_within_total"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Human-facing number, unique within its local calendar day
    order_number = Column(Integer, nullable=False)
    order_day = Column(String(10), nullable=False)  # YYYY-MM-DD

    status = Column(Integer, nullable=False, default=int(OrderStatus.NEW))

    # Parties
    customer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    customer_name = Column(String(255))
    customer_phone = Column(String(20))
    driver_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    nearby_store_id = Column(UUID(as_uuid=True), ForeignKey("store_addresses.id"))
    shipping_address_id = Column(UUID(as_uuid=True), ForeignKey("user_addresses.id"))

    notes = Column(Text)

    # Pricing
    subtotal_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    # Payment
    delivery_type = Column(String(20), nullable=False, default=DeliveryType.DELIVERY.value)
    order_source = Column(String(20), nullable=False, default=OrderSource.APP.value)
    payment_method_type = Column(String(20), nullable=False, default=PaymentMethodType.CASH.value)
    is_deferred = Column(Boolean, nullable=False, default=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    paid_cents = Column(Integer, nullable=False, default=0)  # Running sum of payments

    # Lifecycle timestamps
    admin_accepted_at = Column(DateTime)
    admin_completed_at = Column(DateTime)
    driver_accepted_at = Column(DateTime)
    driver_delivered_at = Column(DateTime)
    canceled_at = Column(DateTime)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    customer = relationship("User", foreign_keys=[customer_id])
    driver = relationship("User", foreign_keys=[driver_id])
    store = relationship("StoreAddress")
    shipping_address = relationship("UserAddress")
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )
    payments = relationship(
        "OrderPayment",
        back_populates="order",
        order_by="OrderPayment.paid_at",
        cascade="all, delete-orphan",
    )
    driver_cancellations = relationship(
        "OrderDriverCancellation",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def status_name(self) -> str:
        return self.status_enum.name.lower()

    @property
    def remaining_cents(self) -> int:
        return self.total_cents - self.paid_cents

    @property
    def canceled_by_drivers(self):
        return [c.driver_id for c in self.driver_cancellations]


class OrderItem(Base):
    """Cart line captured at checkout"""
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    price_cents = Column(Integer, nullable=False)
    total_item_price_cents = Column(Integer, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class OrderPayment(Base):
    """Payment entry; appended only, never edited"""
    __tablename__ = "order_payments"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_order_payments_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    paid_at = Column(DateTime, nullable=False, default=utcnow)
    paid_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Relationships
    order = relationship("Order", back_populates="payments")
    paid_by = relationship("User")


class OrderDriverCancellation(Base):
    """Driver who cancelled an order; the order is not offered to them again"""
    __tablename__ = "order_driver_cancellations"
    __table_args__ = (
        UniqueConstraint("order_id", "driver_id", name="uq_order_driver_cancellation"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    driver_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    canceled_at = Column(DateTime, default=utcnow)

    # Relationships
    order = relationship("Order", back_populates="driver_cancellations")
