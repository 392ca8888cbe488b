"""Tests for the order payment ledger"""

import asyncio
from uuid import uuid4

import pytest

from patisserie.errors import (
    AlreadyTerminal,
    AmountExceedsRemaining,
    InvalidAmount,
    NotFound,
    Unauthorized,
)
from patisserie.models.order import OrderStatus, PaymentMethod, PaymentStatus
from patisserie.services import (
    CartItemInput,
    add_payment,
    cancel_order,
    derive_payment_status,
    load_order,
    recompute_payment_status,
)


def deferred_items(products, total_cents=10000):
    return [CartItemInput(product_id=products[0].id, quantity=1, price_cents=total_cents)]


@pytest.mark.parametrize(
    "is_deferred,total,paid,expected",
    [
        (False, 10000, 0, PaymentStatus.PAID),
        (True, 10000, 0, PaymentStatus.UNPAID),
        (True, 10000, 4000, PaymentStatus.PARTIALLY_PAID),
        (True, 10000, 10000, PaymentStatus.PAID),
        (True, 0, 0, PaymentStatus.UNPAID),
    ],
)
def test_derive_payment_status(is_deferred, total, paid, expected):
    """Test payment status follows the deferred flag and the running sum"""
    assert derive_payment_status(is_deferred, total, paid) is expected


@pytest.mark.asyncio
async def test_partial_payments_on_deferred_order(test_db, test_admin, test_products, place_order):
    """Test 40 + rejected 70 + 60 on a 100.00 deferred order"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    assert order.payment_status == PaymentStatus.UNPAID.value

    await add_payment(test_db, test_admin, order.id, 4000)
    order = await load_order(test_db, order.id)
    assert order.payment_status == PaymentStatus.PARTIALLY_PAID.value
    assert order.remaining_cents == 6000

    with pytest.raises(AmountExceedsRemaining) as exc_info:
        await add_payment(test_db, test_admin, order.id, 7000)
    assert exc_info.value.params == {"amount_cents": 7000, "remaining_cents": 6000}

    await add_payment(test_db, test_admin, order.id, 6000, PaymentMethod.CARD)
    order = await load_order(test_db, order.id)
    assert order.payment_status == PaymentStatus.PAID.value
    assert order.paid_cents == 10000
    assert [p.amount_cents for p in order.payments] == [4000, 6000]
    assert order.total_cents == 10000


@pytest.mark.asyncio
async def test_payment_after_exact_total_is_rejected(test_db, test_admin, test_products, place_order):
    """Test any positive amount fails once payments sum to the total"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    for amount in (2500, 2500, 5000):
        await add_payment(test_db, test_admin, order.id, amount)

    with pytest.raises(AmountExceedsRemaining):
        await add_payment(test_db, test_admin, order.id, 1)

    order = await load_order(test_db, order.id)
    assert order.payment_status == PaymentStatus.PAID.value
    assert len(order.payments) == 3


@pytest.mark.asyncio
async def test_payment_records_payer_and_method(test_db, test_admin, test_products, place_order):
    """Test the payment entry keeps who recorded it and how it was paid"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    payment = await add_payment(test_db, test_admin, order.id, 1500, PaymentMethod.WALLET)

    assert payment.paid_by_id == test_admin.id
    assert payment.paid_at is not None

    order = await load_order(test_db, order.id)
    assert order.payments[0].method == "wallet"
    assert order.payments[0].paid_by.email == "admin@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -500, None])
async def test_non_positive_amount_is_rejected(test_db, test_admin, test_products, place_order, amount):
    """Test zero, negative and missing amounts fail with InvalidAmount"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    with pytest.raises(InvalidAmount):
        await add_payment(test_db, test_admin, order.id, amount)


@pytest.mark.asyncio
async def test_only_admin_can_add_payment(test_db, test_admin, test_driver, test_products, place_order):
    """Test drivers cannot record payments"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    with pytest.raises(Unauthorized):
        await add_payment(test_db, test_driver, order.id, 1000)


@pytest.mark.asyncio
async def test_payment_on_missing_order(test_db, test_admin):
    """Test unknown order ids fail with NotFound"""
    with pytest.raises(NotFound):
        await add_payment(test_db, test_admin, uuid4(), 1000)


@pytest.mark.asyncio
async def test_payment_on_cancelled_order(test_db, test_admin, test_products, place_order):
    """Test closed orders accept no more payments"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    await cancel_order(test_db, test_admin, order.id)

    with pytest.raises(AlreadyTerminal):
        await add_payment(test_db, test_admin, order.id, 1000)


@pytest.mark.asyncio
async def test_recompute_payment_status(test_db, test_admin, test_products, place_order):
    """Test recomputation derives the stored status from the running sum"""
    order = await place_order(
        test_db, test_admin, test_products, items=deferred_items(test_products), is_deferred=True
    )
    await add_payment(test_db, test_admin, order.id, 3000)

    assert await recompute_payment_status(test_db, order.id) is PaymentStatus.PARTIALLY_PAID

    with pytest.raises(NotFound):
        await recompute_payment_status(test_db, uuid4())


@pytest.mark.asyncio
async def test_concurrent_payments_never_exceed_total(session_factory, shared_seeded, place_order):
    """Test concurrent payments whose sum exceeds the balance only accept what fits"""
    admin = shared_seeded["admin"]
    products = shared_seeded["products"]
    async with session_factory() as session:
        order = await place_order(
            session, admin, products, items=deferred_items(products), is_deferred=True
        )

    async def pay(amount):
        async with session_factory() as session:
            await add_payment(session, admin, order.id, amount)
            return amount

    amounts = [3000, 3000, 3000, 3000, 3000]
    results = await asyncio.gather(*[pay(a) for a in amounts], return_exceptions=True)

    accepted = [r for r in results if isinstance(r, int)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(accepted) == 3
    assert all(isinstance(r, AmountExceedsRemaining) for r in rejected)

    async with session_factory() as session:
        order = await load_order(session, order.id)
        assert order.paid_cents == 9000
        assert sum(p.amount_cents for p in order.payments) == 9000
        assert order.payment_status == PaymentStatus.PARTIALLY_PAID.value
        assert order.status == int(OrderStatus.NEW)


@pytest.mark.asyncio
async def test_concurrent_mixed_payments_fit_the_total(session_factory, shared_seeded, place_order):
    """Test every rejected payment was larger than what was left"""
    admin = shared_seeded["admin"]
    products = shared_seeded["products"]
    async with session_factory() as session:
        order = await place_order(
            session, admin, products, items=deferred_items(products), is_deferred=True
        )

    async def pay(amount):
        async with session_factory() as session:
            try:
                await add_payment(session, admin, order.id, amount)
            except AmountExceedsRemaining:
                return amount, False
            return amount, True

    results = await asyncio.gather(*[pay(a) for a in (6000, 5000, 4000, 1000, 500)])

    async with session_factory() as session:
        order = await load_order(session, order.id)

    accepted = sum(amount for amount, ok in results if ok)
    assert accepted == order.paid_cents
    assert accepted == sum(p.amount_cents for p in order.payments)
    assert order.paid_cents <= order.total_cents
    assert all(amount > order.remaining_cents for amount, ok in results if not ok)
