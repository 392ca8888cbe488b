"""Order statistics for the admin dashboard.

Read-only aggregates over committed orders. Results are a snapshot; no
locking is taken, so figures may trail in-flight mutations.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from patisserie.clock import local_day_bounds, utcnow
from patisserie.models.order import Order, OrderItem, OrderStatus

logger = structlog.get_logger()

SALES_STATUS = OrderStatus.COMPLETED

# Dashboard bucket name for each status
STATUS_BUCKETS = {
    OrderStatus.NEW: "new",
    OrderStatus.ADMIN_ACCEPTED: "pending",
    OrderStatus.TRANSIT: "pending_driver",
    OrderStatus.DELIVERED: "delivered",
    OrderStatus.COMPLETED: "completed",
    OrderStatus.CANCELLED: "cancelled",
}


@dataclass
class OrderStats:
    new: int = 0
    pending: int = 0
    pending_driver: int = 0
    delivered: int = 0
    completed: int = 0
    cancelled: int = 0
    total_sales_today: int = 0
    total_sales_last_week: int = 0
    total_items_sold_last_week: int = 0
    distinct_products_last_week: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


async def compute_stats(
    db: AsyncSession,
    store_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> OrderStats:
    """Status counts and sales totals for one store (or all stores when ``store_id`` is None).

    Sales only count COMPLETED orders. "Today" is the local calendar day;
    "last week" is the rolling seven days ending at ``now``. Amounts are in
    cents and default to 0.
    """
    now = now or utcnow()
    scope = [Order.nearby_store_id == store_id] if store_id is not None else []
    stats = OrderStats()

    # Status buckets
    result = await db.execute(
        select(Order.status, func.count(Order.id)).where(*scope).group_by(Order.status)
    )
    for status, count in result.all():
        setattr(stats, STATUS_BUCKETS[OrderStatus(status)], count)

    # Sales today
    day_start, day_end = local_day_bounds(now)
    result = await db.execute(
        select(func.coalesce(func.sum(Order.total_cents), 0)).where(
            *scope,
            Order.status == int(SALES_STATUS),
            Order.created_at >= day_start,
            Order.created_at < day_end,
        )
    )
    stats.total_sales_today = int(result.scalar_one())

    # Rolling week
    week_start = now - timedelta(days=7)
    week_filters = [
        *scope,
        Order.status == int(SALES_STATUS),
        Order.created_at >= week_start,
        Order.created_at <= now,
    ]
    result = await db.execute(
        select(func.coalesce(func.sum(Order.total_cents), 0)).where(*week_filters)
    )
    stats.total_sales_last_week = int(result.scalar_one())

    result = await db.execute(
        select(
            func.coalesce(func.sum(OrderItem.quantity), 0),
            func.count(func.distinct(OrderItem.product_id)),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .where(*week_filters)
    )
    items_sold, distinct_products = result.one()
    stats.total_items_sold_last_week = int(items_sold or 0)
    stats.distinct_products_last_week = int(distinct_products or 0)

    logger.debug("Order stats computed", store_id=str(store_id) if store_id else None, **stats.as_dict())
    return stats
