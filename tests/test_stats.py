"""Tests for admin order statistics"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from patisserie.models.order import DeliveryType, OrderStatus
from patisserie.models.store import StoreAddress
from patisserie.models.user import User, UserRole
from patisserie.services import (
    CartItemInput,
    accept_order_by_driver,
    cancel_order,
    compute_stats,
    transition_order,
)

NOW = datetime(2026, 3, 10, 12, 0)


async def close_order(db, admin, order, now):
    """Approve and complete a pickup order"""
    await transition_order(db, admin, order.id, OrderStatus.ADMIN_ACCEPTED, now=now)
    await transition_order(db, admin, order.id, OrderStatus.COMPLETED, now=now)


@pytest.mark.asyncio
async def test_empty_store_reports_zeros(test_db, test_store):
    """Test a store with no orders reports 0 everywhere, never None"""
    stats = await compute_stats(test_db, test_store.id, now=NOW)

    assert stats.as_dict() == {
        "new": 0,
        "pending": 0,
        "pending_driver": 0,
        "delivered": 0,
        "completed": 0,
        "cancelled": 0,
        "total_sales_today": 0,
        "total_sales_last_week": 0,
        "total_items_sold_last_week": 0,
        "distinct_products_last_week": 0,
    }


@pytest.mark.asyncio
async def test_no_completed_orders_today(test_db, test_admin, test_store, test_products, place_order):
    """Test open orders alone leave today's sales at 0"""
    await place_order(test_db, test_admin, test_products, now=NOW)

    stats = await compute_stats(test_db, test_store.id, now=NOW)

    assert stats.new == 1
    assert stats.total_sales_today == 0
    assert stats.total_sales_last_week == 0


@pytest.mark.asyncio
async def test_status_buckets(test_db, test_admin, test_driver, test_store, test_products, place_order):
    """Test each status is counted in its own bucket"""
    orders = [await place_order(test_db, test_admin, test_products, now=NOW) for _ in range(5)]

    await transition_order(test_db, test_admin, orders[1].id, OrderStatus.ADMIN_ACCEPTED)

    await transition_order(test_db, test_admin, orders[2].id, OrderStatus.ADMIN_ACCEPTED)
    await transition_order(test_db, test_admin, orders[2].id, OrderStatus.TRANSIT)

    await transition_order(test_db, test_admin, orders[3].id, OrderStatus.ADMIN_ACCEPTED)
    await accept_order_by_driver(test_db, test_driver, orders[3].id)
    await transition_order(test_db, test_admin, orders[3].id, OrderStatus.TRANSIT)
    await transition_order(test_db, test_driver, orders[3].id, OrderStatus.DELIVERED)

    await cancel_order(test_db, test_admin, orders[4].id)

    stats = await compute_stats(test_db, test_store.id, now=NOW)

    assert (stats.new, stats.pending, stats.pending_driver) == (1, 1, 1)
    assert (stats.delivered, stats.completed, stats.cancelled) == (1, 0, 1)


@pytest.mark.asyncio
async def test_sales_windows(test_db, test_admin, test_store, test_products, place_order):
    """Test today counts the local day and last week the rolling seven days"""
    old = await place_order(
        test_db, test_admin, test_products, now=NOW - timedelta(days=10), delivery_type=DeliveryType.PICKUP
    )
    await close_order(test_db, test_admin, old, NOW)

    earlier = await place_order(
        test_db,
        test_admin,
        test_products,
        now=NOW - timedelta(days=3),
        delivery_type=DeliveryType.PICKUP,
        items=[CartItemInput(product_id=test_products[0].id, quantity=4, price_cents=1000)],
    )
    await close_order(test_db, test_admin, earlier, NOW)

    today = await place_order(
        test_db, test_admin, test_products, now=NOW, delivery_type=DeliveryType.PICKUP
    )
    await close_order(test_db, test_admin, today, NOW)

    # Cancelled orders never count as sales
    cancelled = await place_order(test_db, test_admin, test_products, now=NOW)
    await cancel_order(test_db, test_admin, cancelled.id)

    stats = await compute_stats(test_db, test_store.id, now=NOW)

    assert stats.completed == 3
    assert stats.total_sales_today == 2500
    assert stats.total_sales_last_week == 2500 + 4000
    assert stats.total_items_sold_last_week == 3 + 4
    assert stats.distinct_products_last_week == 2


@pytest.mark.asyncio
async def test_stats_are_scoped_to_store(test_db, test_admin, test_store, test_products, place_order):
    """Test orders from another store are left out"""
    other_store = StoreAddress(id=uuid4(), name="Uptown")
    test_db.add(other_store)
    await test_db.flush()
    other_admin = User(
        id=uuid4(),
        email="uptown@example.com",
        hashed_password="x",
        role=UserRole.ADMIN,
        store_address_id=other_store.id,
    )
    test_db.add(other_admin)
    await test_db.commit()

    mine = await place_order(test_db, test_admin, test_products, now=NOW, delivery_type=DeliveryType.PICKUP)
    await close_order(test_db, test_admin, mine, NOW)
    theirs = await place_order(test_db, other_admin, test_products, now=NOW, delivery_type=DeliveryType.PICKUP)
    await close_order(test_db, other_admin, theirs, NOW)

    stats = await compute_stats(test_db, test_store.id, now=NOW)
    everywhere = await compute_stats(test_db, now=NOW)

    assert stats.completed == 1
    assert stats.total_sales_today == 2500
    assert everywhere.completed == 2
    assert everywhere.total_sales_today == 5000
