"""Payment ledger for orders.

Payments are appended to an order and never edited. ``orders.paid_cents``
holds the running sum and is only moved by a guarded increment, so the
balance check and the write are one statement and concurrent payments
cannot jointly exceed the order total.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from patisserie.clock import utcnow
from patisserie.errors import (
    AlreadyTerminal,
    AmountExceedsRemaining,
    InvalidAmount,
    NotFound,
    Unauthorized,
)
from patisserie.models.audit import AuditLog
from patisserie.models.order import (
    Order,
    OrderPayment,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    TERMINAL_STATUSES,
)
from patisserie.models.user import User

logger = structlog.get_logger()

_TERMINAL_CODES = [int(s) for s in TERMINAL_STATUSES]


def derive_payment_status(is_deferred: bool, total_cents: int, paid_cents: int) -> PaymentStatus:
    """Payment status implied by the ledger.

    Non-deferred orders are paid up front and always report ``paid``.
    """
    if not is_deferred:
        return PaymentStatus.PAID
    if paid_cents <= 0:
        return PaymentStatus.UNPAID
    if paid_cents < total_cents:
        return PaymentStatus.PARTIALLY_PAID
    return PaymentStatus.PAID


async def recompute_payment_status(db: AsyncSession, order_id: UUID) -> PaymentStatus:
    """Re-derive and store ``payment_status`` from the persisted running sum"""
    result = await db.execute(
        select(Order.is_deferred, Order.total_cents, Order.paid_cents).where(Order.id == order_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound(order_id=order_id)

    status = derive_payment_status(row.is_deferred, row.total_cents, row.paid_cents)
    await db.execute(
        update(Order)
        .where(Order.id == order_id)
        .values(payment_status=status.value, updated_at=utcnow())
    )
    return status


async def add_payment(
    db: AsyncSession,
    actor: User,
    order_id: UUID,
    amount_cents: int,
    method: PaymentMethod = PaymentMethod.CASH,
    now: Optional[datetime] = None,
) -> OrderPayment:
    """Record a (partial) payment against an order and commit.

    Raises InvalidAmount, AmountExceedsRemaining, AlreadyTerminal, NotFound
    or Unauthorized. Over-payments are rejected, never truncated.
    """
    if not actor.is_admin:
        raise Unauthorized("Only store staff can record payments", role=actor.role)
    if amount_cents is None or amount_cents <= 0:
        raise InvalidAmount(amount_cents=amount_cents)

    now = now or utcnow()
    method = PaymentMethod(method)

    # Guarded increment: the balance check happens inside the write
    scope = [Order.id == order_id]
    if actor.store_address_id is not None:
        scope.append(Order.nearby_store_id == actor.store_address_id)
    result = await db.execute(
        update(Order)
        .where(
            *scope,
            Order.status.notin_(_TERMINAL_CODES),
            Order.paid_cents + amount_cents <= Order.total_cents,
        )
        .values(paid_cents=Order.paid_cents + amount_cents, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        await _raise_rejection(db, scope, order_id, amount_cents)

    payment = OrderPayment(
        order_id=order_id,
        amount_cents=amount_cents,
        method=method.value,
        paid_at=now,
        paid_by_id=actor.id,
    )
    db.add(payment)
    status = await recompute_payment_status(db, order_id)
    db.add(
        AuditLog(
            store_id=actor.store_address_id,
            actor_id=actor.id,
            actor_role=actor.role.value,
            action="payment.add",
            resource_id=order_id,
            data_json={"amount_cents": amount_cents, "method": method.value, "payment_status": status.value},
        )
    )
    await db.commit()

    logger.info(
        "Payment added",
        order_id=str(order_id),
        amount_cents=amount_cents,
        method=method.value,
        payment_status=status.value,
    )
    return payment


async def _raise_rejection(db: AsyncSession, scope, order_id: UUID, amount_cents: int) -> None:
    """Explain why the guarded increment matched no row"""
    result = await db.execute(
        select(Order.status, Order.total_cents, Order.paid_cents).where(*scope)
    )
    row = result.one_or_none()

    if row is None:
        raise NotFound(order_id=order_id)
    if OrderStatus(row.status) in TERMINAL_STATUSES:
        raise AlreadyTerminal(order_id=order_id, status=OrderStatus(row.status).name)

    remaining = row.total_cents - row.paid_cents
    logger.info(
        "Payment rejected",
        order_id=str(order_id),
        amount_cents=amount_cents,
        remaining_cents=remaining,
    )
    raise AmountExceedsRemaining(amount_cents=amount_cents, remaining_cents=remaining)
