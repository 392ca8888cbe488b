"""Order management API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from patisserie.database import get_db
from patisserie.jobs.tasks import notify_order_status
from patisserie.models.order import Order, OrderStatus
from patisserie.models.user import User, UserRole
from patisserie.schemas.order import (
    ErrorResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    OrderStatusUpdate,
    PaymentCreate,
)
from patisserie.services import (
    CartItemInput,
    CreateOrderInput,
    add_payment,
    cancel_order,
    compute_stats,
    create_order,
    list_orders,
    load_order,
    transition_order,
)
from patisserie.api.auth import get_current_active_user, require_role

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def notify_customer(order: Order) -> None:
    """Queue the customer notification for the order's current status"""
    notify_order_status.delay(
        order_id=str(order.id),
        order_number=order.order_number,
        status_name=order.status_name,
        phone=order.customer_phone,
    )


async def _respond(db: AsyncSession, order_id: UUID, current_user: User) -> OrderResponse:
    order = await load_order(db, order_id, current_user)
    return OrderResponse.model_validate(order)


@router.post("", response_model=OrderResponse, status_code=201, responses=ERROR_RESPONSES)
async def create_new_order(
    order_data: OrderCreate,
    current_user: User = Depends(require_role(UserRole.CUSTOMER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Place an order (customer checkout or staff manual entry)"""
    payload = CreateOrderInput(
        items=[
            CartItemInput(product_id=item.product_id, quantity=item.quantity, price_cents=item.price_cents)
            for item in order_data.items
        ],
        payment_method_type=order_data.payment_method_type,
        order_source=order_data.order_source,
        delivery_type=order_data.delivery_type,
        is_deferred=order_data.is_deferred,
        shipping_address_id=order_data.shipping_address_id,
        nearby_store_id=order_data.nearby_store_id,
        customer_id=order_data.customer_id,
        customer_name=order_data.customer_name,
        customer_phone=order_data.customer_phone,
        notes=order_data.notes,
    )
    order = await create_order(db, current_user, payload)
    notify_customer(order)
    return await _respond(db, order.id, current_user)


@router.get("", response_model=OrderListResponse)
async def list_my_orders(
    view: str = Query("pending"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_role(UserRole.CUSTOMER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List orders for the current customer or the admin's store"""
    orders = await list_orders(db, current_user, view, limit=limit, offset=offset)
    return OrderListResponse(
        items=[OrderResponse.model_validate(order) for order in orders],
        view=view,
        limit=limit,
        offset=offset,
    )


@router.get("/admin/stats", response_model=OrderStatsResponse)
async def get_order_stats(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Status counts and sales totals for the admin's store"""
    stats = await compute_stats(db, current_user.store_address_id)
    return OrderStatsResponse(**stats.as_dict())


@router.get("/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def get_order(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get order details"""
    return await _respond(db, order_id, current_user)


async def _named_transition(db: AsyncSession, current_user: User, order_id: UUID, target: OrderStatus):
    order = await transition_order(db, current_user, order_id, target)
    notify_customer(order)
    return await _respond(db, order_id, current_user)


@router.put("/{order_id}/status", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def update_order_status(
    order_id: UUID,
    update: OrderStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Move an order to another status"""
    return await _named_transition(db, current_user, order_id, update.status)


@router.put("/{order_id}/approved", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def approve_order(
    order_id: UUID,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Store accepts a new order"""
    return await _named_transition(db, current_user, order_id, OrderStatus.ADMIN_ACCEPTED)


@router.put("/{order_id}/transit", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def dispatch_order(
    order_id: UUID,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Store hands the order over for delivery"""
    return await _named_transition(db, current_user, order_id, OrderStatus.TRANSIT)


@router.put("/{order_id}/delivered", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def deliver_order(
    order_id: UUID,
    current_user: User = Depends(require_role(UserRole.DRIVER)),
    db: AsyncSession = Depends(get_db),
):
    """Assigned driver marks the order delivered"""
    return await _named_transition(db, current_user, order_id, OrderStatus.DELIVERED)


@router.put("/{order_id}/completed", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def complete_order(
    order_id: UUID,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Store closes a delivered (or picked up) and fully paid order"""
    return await _named_transition(db, current_user, order_id, OrderStatus.COMPLETED)


@router.put("/{order_id}/cancelled", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def cancel(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an order"""
    order = await cancel_order(db, current_user, order_id)
    notify_customer(order)
    return await _respond(db, order_id, current_user)


@router.post("/{order_id}/payments", response_model=OrderResponse, status_code=201, responses=ERROR_RESPONSES)
async def add_order_payment(
    order_id: UUID,
    payment: PaymentCreate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Record a deposit or installment against an order"""
    await add_payment(db, current_user, order_id, payment.amount_cents, payment.method)
    return await _respond(db, order_id, current_user)
