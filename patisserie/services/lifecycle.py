"""Order lifecycle: creation, status transitions, cancellation and driver assignment.

All status changes go through ``TRANSITIONS``; a change that is not listed
there is rejected no matter which endpoint asked for it. Status writes are
compare-and-set on the current status, so two concurrent requests cannot
both move the same order out of one state.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from patisserie.clock import local_date, utcnow
from patisserie.config import settings
from patisserie.database import dialect_insert
from patisserie.errors import (
    AlreadyTerminal,
    InvalidTransition,
    Unauthorized,
    ValidationError,
)
from patisserie.models.audit import AuditLog
from patisserie.models.order import (
    DeliveryType,
    Order,
    OrderDriverCancellation,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMethodType,
    PaymentStatus,
    TERMINAL_STATUSES,
)
from patisserie.models.product import Product
from patisserie.models.store import UserAddress
from patisserie.models.user import User, UserRole
from patisserie.services.counter import next_daily_order_number
from patisserie.services.payments import derive_payment_status
from patisserie.services.queries import get_order_for_actor

logger = structlog.get_logger()


@dataclass(frozen=True)
class Transition:
    source: OrderStatus
    target: OrderStatus
    roles: FrozenSet[UserRole]
    stamps: Tuple[str, ...] = ()


TRANSITIONS: Dict[Tuple[OrderStatus, OrderStatus], Transition] = {
    (t.source, t.target): t
    for t in [
        Transition(OrderStatus.NEW, OrderStatus.ADMIN_ACCEPTED, frozenset([UserRole.ADMIN]), ("admin_accepted_at",)),
        Transition(OrderStatus.ADMIN_ACCEPTED, OrderStatus.TRANSIT, frozenset([UserRole.ADMIN]), ("admin_completed_at",)),
        Transition(OrderStatus.TRANSIT, OrderStatus.DELIVERED, frozenset([UserRole.DRIVER]), ("driver_delivered_at",)),
        Transition(OrderStatus.DELIVERED, OrderStatus.COMPLETED, frozenset([UserRole.ADMIN]), ("admin_completed_at",)),
        # Pickup and in-store orders have no driver leg
        Transition(OrderStatus.ADMIN_ACCEPTED, OrderStatus.COMPLETED, frozenset([UserRole.ADMIN]), ("admin_completed_at",)),
    ]
}

# Cancellation is reachable from every non-terminal state
for _status in OrderStatus:
    if _status not in TERMINAL_STATUSES:
        TRANSITIONS[(_status, OrderStatus.CANCELLED)] = Transition(
            _status,
            OrderStatus.CANCELLED,
            frozenset([UserRole.ADMIN, UserRole.DRIVER, UserRole.CUSTOMER]),
            ("canceled_at",),
        )


def allowed_targets(status: OrderStatus) -> List[OrderStatus]:
    return sorted(target for (source, target) in TRANSITIONS if source == status)


def get_transition(order: Order, target: OrderStatus) -> Transition:
    """Look up the edge from the order's status to ``target`` or raise InvalidTransition"""
    source = order.status_enum
    transition = TRANSITIONS.get((source, target))
    if transition is None:
        raise InvalidTransition(
            f"Cannot move order from {source.name} to {target.name}",
            order_id=order.id,
            current=source.name,
            target=target.name,
            allowed=[s.name for s in allowed_targets(source)],
        )
    if source is OrderStatus.ADMIN_ACCEPTED and target is OrderStatus.COMPLETED:
        if order.delivery_type == DeliveryType.DELIVERY.value:
            raise InvalidTransition(
                "Delivery orders must be delivered before completion",
                order_id=order.id,
                current=source.name,
                target=target.name,
            )
    return transition


@dataclass
class CartItemInput:
    product_id: UUID
    quantity: int
    price_cents: Optional[int] = None


@dataclass
class CreateOrderInput:
    items: Sequence[CartItemInput]
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


def price_order(payload: CreateOrderInput) -> Dict[str, int]:
    """Compute line totals, tax, shipping and grand total in cents"""
    if not payload.items:
        raise ValidationError("Cart is empty", field="items")

    subtotal = 0
    for index, item in enumerate(payload.items):
        if item.quantity is None or item.quantity < 1:
            raise ValidationError(
                "Quantity must be at least 1",
                field=f"items[{index}].quantity",
                value=item.quantity,
            )
        if item.price_cents is None or item.price_cents < 0:
            raise ValidationError(
                "Price cannot be negative",
                field=f"items[{index}].price_cents",
                value=item.price_cents,
            )
        subtotal += item.quantity * item.price_cents

    if payload.order_source == OrderSource.IN_STORE:
        tax = 0
        shipping = 0
    else:
        tax = int(round(subtotal * settings.tax_rate))
        shipping = 0 if payload.delivery_type == DeliveryType.PICKUP else settings.shipping_price_cents

    total = subtotal + tax + shipping
    if total < 0 or tax < 0 or shipping < 0:
        raise ValidationError("Order total cannot be negative", field="total", value=total)

    return {
        "subtotal_cents": subtotal,
        "tax_cents": tax,
        "shipping_cents": shipping,
        "total_cents": total,
    }


async def create_order(
    db: AsyncSession,
    actor: User,
    payload: CreateOrderInput,
    now: Optional[datetime] = None,
) -> Order:
    """Validate, price, number and persist a new order in state NEW"""
    now = now or utcnow()
    payload.order_source = OrderSource(payload.order_source)
    payload.delivery_type = DeliveryType(payload.delivery_type)
    payload.payment_method_type = PaymentMethodType(payload.payment_method_type)

    if payload.order_source == OrderSource.IN_STORE:
        payload.delivery_type = DeliveryType.PICKUP

    customer_id, store_id = await _resolve_parties(db, actor, payload)
    await _apply_catalog_prices(db, actor, payload)
    prices = price_order(payload)

    # Numbering is the first write so the counter row lock is held for as little as possible
    order_number = await next_daily_order_number(db, settings.order_counter_name, now)

    payment_status = derive_payment_status(payload.is_deferred, prices["total_cents"], 0)
    order = Order(
        order_number=order_number,
        order_day=local_date(now).isoformat(),
        status=int(OrderStatus.NEW),
        customer_id=customer_id,
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        nearby_store_id=store_id,
        shipping_address_id=payload.shipping_address_id,
        notes=payload.notes,
        delivery_type=payload.delivery_type.value,
        order_source=payload.order_source.value,
        payment_method_type=payload.payment_method_type.value,
        is_deferred=payload.is_deferred,
        payment_status=payment_status.value,
        paid_cents=0,
        created_at=now,
        updated_at=now,
        **prices,
    )
    order.items = [
        OrderItem(
            product_id=item.product_id,
            position=position,
            quantity=item.quantity,
            price_cents=item.price_cents,
            total_item_price_cents=item.quantity * item.price_cents,
        )
        for position, item in enumerate(payload.items)
    ]
    db.add(order)
    await db.flush()

    db.add(_audit(actor, order, "order.create", {"to": int(OrderStatus.NEW), "order_number": order_number}))
    await db.commit()

    logger.info(
        "Order created",
        order_id=str(order.id),
        order_number=order_number,
        total_cents=order.total_cents,
        source=order.order_source,
        is_deferred=order.is_deferred,
    )
    return order


async def _resolve_parties(
    db: AsyncSession, actor: User, payload: CreateOrderInput
) -> Tuple[Optional[UUID], Optional[UUID]]:
    """Work out the customer and store for a new order and check who may place it"""
    if actor.is_admin:
        return payload.customer_id, actor.store_address_id or payload.nearby_store_id

    if not actor.is_customer:
        raise Unauthorized("Drivers cannot place orders", role=actor.role)
    if payload.order_source != OrderSource.APP:
        raise Unauthorized("Only store staff can enter phone or in-store orders", source=payload.order_source)
    if payload.is_deferred:
        raise Unauthorized("Only store staff can create deferred-payment orders")

    if payload.delivery_type == DeliveryType.DELIVERY:
        if payload.shipping_address_id is None:
            raise ValidationError("Shipping address is required", field="shipping_address_id")
        result = await db.execute(
            select(UserAddress.id).where(
                UserAddress.id == payload.shipping_address_id,
                UserAddress.user_id == actor.id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise ValidationError(
                "Shipping address not found",
                field="shipping_address_id",
                value=payload.shipping_address_id,
            )

    payload.customer_name = payload.customer_name or actor.name
    payload.customer_phone = payload.customer_phone or actor.phone
    return actor.id, payload.nearby_store_id


async def _apply_catalog_prices(db: AsyncSession, actor: User, payload: CreateOrderInput) -> None:
    """Check every line refers to an active product and fill in its price.

    Customers always pay the catalog price. Staff may enter a different
    price by hand; lines without one fall back to the catalog.
    """
    product_ids = {item.product_id for item in payload.items}
    if not product_ids:
        return

    result = await db.execute(
        select(Product.id, Product.price_cents, Product.is_active).where(Product.id.in_(product_ids))
    )
    catalog = {row.id: row for row in result}

    items = []
    for index, item in enumerate(payload.items):
        product = catalog.get(item.product_id)
        if product is None or product.is_active is False:
            raise ValidationError(
                "Product is not available",
                field=f"items[{index}].product_id",
                value=item.product_id,
            )
        price_cents = item.price_cents
        if not actor.is_admin or price_cents is None:
            price_cents = product.price_cents
        items.append(CartItemInput(product_id=item.product_id, quantity=item.quantity, price_cents=price_cents))
    payload.items = items


async def apply_status_change(
    db: AsyncSession,
    order: Order,
    new_status: OrderStatus,
    actor: User,
    stamp_fields: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
    extra_values: Optional[Dict[str, object]] = None,
) -> Order:
    """Move ``order`` to ``new_status`` and stamp the transition timestamps.

    The write only succeeds if the stored status is still the one the
    transition was validated against. Does not commit; on a lost race the
    caller's session is left to discard the transaction.
    """
    now = now or utcnow()
    new_status = OrderStatus(new_status)
    transition = get_transition(order, new_status)

    if actor.role not in transition.roles:
        raise Unauthorized(
            f"{actor.role.value} cannot move order to {new_status.name}",
            order_id=order.id,
            role=actor.role,
        )

    stamps = transition.stamps if stamp_fields is None else tuple(stamp_fields)
    values: Dict[str, object] = {name: now for name in stamps}
    values.update(extra_values or {})
    values["status"] = int(new_status)
    values["updated_at"] = now

    source = order.status_enum
    result = await db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == int(source))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition(
            "Order status changed concurrently",
            order_id=order.id,
            expected=source.name,
            target=new_status.name,
        )

    for name, value in values.items():
        setattr(order, name, value)

    db.add(_audit(actor, order, f"order.{new_status.name.lower()}", {"from": int(source), "to": int(new_status)}))

    logger.info(
        "Order status changed",
        order_id=str(order.id),
        order_number=order.order_number,
        from_status=source.name,
        to_status=new_status.name,
        actor_role=actor.role.value,
    )
    return order


async def transition_order(
    db: AsyncSession,
    actor: User,
    order_id: UUID,
    target_status: OrderStatus,
    now: Optional[datetime] = None,
) -> Order:
    """Apply a forward transition (not cancellation) requested by ``actor`` and commit"""
    target_status = OrderStatus(target_status)
    if target_status is OrderStatus.CANCELLED:
        return await cancel_order(db, actor, order_id, now=now)

    order = await get_order_for_actor(db, actor, order_id)
    if order.status_enum.is_terminal:
        raise InvalidTransition(
            f"Order is already {order.status_enum.name}",
            order_id=order.id,
            current=order.status_enum.name,
            target=target_status.name,
        )

    if target_status is OrderStatus.DELIVERED and actor.is_driver and order.driver_id != actor.id:
        raise Unauthorized("Only the assigned driver can deliver this order", order_id=order.id)

    if target_status is OrderStatus.COMPLETED and order.payment_status != PaymentStatus.PAID.value:
        raise InvalidTransition(
            "Order cannot be completed before it is fully paid",
            order_id=order.id,
            payment_status=order.payment_status,
            remaining_cents=order.remaining_cents,
        )

    await apply_status_change(db, order, target_status, actor, now=now)
    await db.commit()
    return order


async def cancel_order(
    db: AsyncSession,
    actor: User,
    order_id: UUID,
    now: Optional[datetime] = None,
) -> Order:
    """Cancel a non-terminal order; a cancelling driver is never offered it again"""
    now = now or utcnow()
    order = await get_order_for_actor(db, actor, order_id)

    if order.status_enum.is_terminal:
        raise AlreadyTerminal(order_id=order.id, status=order.status_enum.name)

    if actor.is_customer and order.status_enum is not OrderStatus.NEW:
        raise Unauthorized("Orders can only be cancelled before the store accepts them", order_id=order.id)

    if actor.is_driver:
        if order.status_enum not in (OrderStatus.ADMIN_ACCEPTED, OrderStatus.TRANSIT):
            raise Unauthorized(
                "Drivers can only cancel orders the store accepted",
                order_id=order.id,
                status=order.status_enum.name,
            )
        if order.driver_id not in (None, actor.id):
            raise Unauthorized("Order is assigned to another driver", order_id=order.id)

    if order.paid_cents > 0:
        logger.warning(
            "Cancelling order with recorded payments",
            order_id=str(order.id),
            paid_cents=order.paid_cents,
        )

    await apply_status_change(db, order, OrderStatus.CANCELLED, actor, now=now)
    if actor.is_driver:
        await record_driver_cancellation(db, order.id, actor.id, now)
    await db.commit()
    return order


async def record_driver_cancellation(
    db: AsyncSession, order_id: UUID, driver_id: UUID, now: Optional[datetime] = None
) -> None:
    """Add the driver to the order's cancelled-by set; repeated calls are no-ops"""
    table = OrderDriverCancellation.__table__
    insert = dialect_insert(db)
    stmt = (
        insert(table)
        .values(
            id=uuid.uuid4(),
            order_id=order_id,
            driver_id=driver_id,
            canceled_at=now or utcnow(),
        )
        .on_conflict_do_nothing(index_elements=[table.c.order_id, table.c.driver_id])
    )
    await db.execute(stmt)


async def accept_order_by_driver(
    db: AsyncSession,
    actor: User,
    order_id: UUID,
    now: Optional[datetime] = None,
) -> Order:
    """Assign an approved delivery order to the requesting driver.

    This is an assignment, not a status change: the store moves the order to
    TRANSIT. The first driver to accept wins.
    """
    if not actor.is_driver:
        raise Unauthorized("Only drivers can accept deliveries", role=actor.role)
    now = now or utcnow()
    order = await get_order_for_actor(db, actor, order_id)

    if order.status_enum not in (OrderStatus.ADMIN_ACCEPTED, OrderStatus.TRANSIT):
        raise InvalidTransition(
            "Order is not open for drivers",
            order_id=order.id,
            current=order.status_enum.name,
        )
    if order.delivery_type != DeliveryType.DELIVERY.value:
        raise InvalidTransition("Order is not a delivery order", order_id=order.id)

    result = await db.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.driver_id.is_(None),
            Order.status.in_([int(OrderStatus.ADMIN_ACCEPTED), int(OrderStatus.TRANSIT)]),
        )
        .values(driver_id=actor.id, driver_accepted_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition("Order has already been taken", order_id=order.id)

    order.driver_id = actor.id
    order.driver_accepted_at = now
    order.updated_at = now
    db.add(_audit(actor, order, "order.driver_accept", {"driver_id": str(actor.id)}))
    await db.commit()

    logger.info("Order accepted by driver", order_id=str(order.id), driver_id=str(actor.id))
    return order


def _audit(actor: User, order: Order, action: str, data: Dict[str, object]) -> AuditLog:
    return AuditLog(
        store_id=order.nearby_store_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        action=action,
        resource_type="order",
        resource_id=order.id,
        data_json=data,
    )
