"""Order lookups and the order read model"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from patisserie.clock import utcnow
from patisserie.config import settings
from patisserie.errors import NotFound, ValidationError
from patisserie.models.order import (
    DeliveryType,
    Order,
    OrderDriverCancellation,
    OrderItem,
    OrderPayment,
    OrderStatus,
    TERMINAL_STATUSES,
)
from patisserie.models.user import User

READ_MODEL_OPTIONS = (
    selectinload(Order.customer),
    selectinload(Order.driver),
    selectinload(Order.store),
    selectinload(Order.shipping_address),
    selectinload(Order.items).selectinload(OrderItem.product),
    selectinload(Order.payments).selectinload(OrderPayment.paid_by),
    selectinload(Order.driver_cancellations),
)

VIEWS = {
    "admin": ("pending", "completed", "all"),
    "driver": ("available", "accepted", "delivered", "cancelled"),
    "customer": ("pending", "completed"),
}


def actor_scope(actor: User):
    """WHERE clauses limiting orders to what ``actor`` may see"""
    if actor.is_admin:
        if actor.store_address_id is None:
            return []
        return [Order.nearby_store_id == actor.store_address_id]
    if actor.is_driver:
        if actor.store_address_id is None:
            return [Order.driver_id == actor.id]
        return [or_(Order.nearby_store_id == actor.store_address_id, Order.driver_id == actor.id)]
    return [Order.customer_id == actor.id]


async def get_order_for_actor(db: AsyncSession, actor: User, order_id: UUID) -> Order:
    """Load one order visible to ``actor`` or raise NotFound"""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id, *actor_scope(actor))
        .options(selectinload(Order.driver_cancellations))
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound(order_id=order_id)
    return order


async def load_order(db: AsyncSession, order_id: UUID, actor: Optional[User] = None) -> Order:
    """Order with its related rows joined in for display"""
    scope = actor_scope(actor) if actor is not None else []
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id, *scope)
        .options(*READ_MODEL_OPTIONS)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound(order_id=order_id)
    return order


async def list_orders(
    db: AsyncSession,
    actor: User,
    view: str,
    limit: int = 50,
    offset: int = 0,
    now: Optional[datetime] = None,
) -> List[Order]:
    """Role-specific order lists, newest first"""
    role = actor.role.value
    if view not in VIEWS[role]:
        raise ValidationError(f"Unknown view '{view}' for {role}", field="view", allowed=list(VIEWS[role]))

    now = now or utcnow()
    filters = list(actor_scope(actor))

    if actor.is_admin:
        if view == "pending":
            filters.append(Order.status == int(OrderStatus.NEW))
        elif view == "completed":
            since = now - timedelta(days=30 * settings.admin_history_months)
            filters.append(Order.status.in_([int(s) for s in TERMINAL_STATUSES]))
            filters.append(Order.created_at >= since)

    elif actor.is_driver:
        if actor.store_address_id is None and view == "available":
            return []
        if view == "available":
            declined = select(OrderDriverCancellation.order_id).where(
                OrderDriverCancellation.driver_id == actor.id
            )
            filters = [
                Order.nearby_store_id == actor.store_address_id,
                Order.status.in_([int(OrderStatus.ADMIN_ACCEPTED), int(OrderStatus.TRANSIT)]),
                Order.delivery_type == DeliveryType.DELIVERY.value,
                Order.driver_id.is_(None),
                Order.id.notin_(declined),
            ]
        elif view == "accepted":
            filters = [
                Order.driver_id == actor.id,
                Order.status.in_([int(OrderStatus.ADMIN_ACCEPTED), int(OrderStatus.TRANSIT)]),
            ]
        elif view == "delivered":
            filters = [
                Order.driver_id == actor.id,
                Order.status.in_([int(OrderStatus.DELIVERED), int(OrderStatus.COMPLETED)]),
            ]
        elif view == "cancelled":
            declined = select(OrderDriverCancellation.order_id).where(
                OrderDriverCancellation.driver_id == actor.id
            )
            filters = [Order.id.in_(declined)]

    else:
        terminal = [int(s) for s in TERMINAL_STATUSES]
        if view == "pending":
            filters.append(Order.status.notin_(terminal))
        else:
            filters.append(Order.status.in_(terminal))

    result = await db.execute(
        select(Order)
        .where(*filters)
        .options(*READ_MODEL_OPTIONS)
        .order_by(Order.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())
