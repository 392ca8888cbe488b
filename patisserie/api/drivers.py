"""Driver order endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from patisserie.database import get_db
from patisserie.models.order import OrderStatus
from patisserie.models.user import User, UserRole
from patisserie.schemas.order import OrderListResponse, OrderResponse
from patisserie.services import (
    accept_order_by_driver,
    cancel_order,
    list_orders,
    load_order,
    transition_order,
)
from patisserie.api.auth import require_role
from patisserie.api.orders import ERROR_RESPONSES, notify_customer

router = APIRouter()

require_driver = require_role(UserRole.DRIVER)


@router.get("/orders", response_model=OrderListResponse)
async def list_driver_orders(
    view: str = Query("available"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    """Orders open for pickup, or the driver's own accepted / delivered / cancelled orders"""
    orders = await list_orders(db, current_user, view, limit=limit, offset=offset)
    return OrderListResponse(
        items=[OrderResponse.model_validate(order) for order in orders],
        view=view,
        limit=limit,
        offset=offset,
    )


@router.put("/orders/{order_id}/accept", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def accept_order(
    order_id: UUID,
    current_user: User = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    """Take an approved delivery order"""
    await accept_order_by_driver(db, current_user, order_id)
    return OrderResponse.model_validate(await load_order(db, order_id, current_user))


@router.put("/orders/{order_id}/delivered", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def mark_delivered(
    order_id: UUID,
    current_user: User = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    """Mark the driver's order as delivered"""
    order = await transition_order(db, current_user, order_id, OrderStatus.DELIVERED)
    notify_customer(order)
    return OrderResponse.model_validate(await load_order(db, order_id, current_user))


@router.delete("/orders/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def cancel_delivery(
    order_id: UUID,
    current_user: User = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    """Driver cancels the order; it is never offered to them again"""
    order = await cancel_order(db, current_user, order_id)
    notify_customer(order)
    return OrderResponse.model_validate(await load_order(db, order_id, current_user))
