"""Order endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import get_current_user, get_db, require_roles
from storefront.core.errors import NotFound
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.auth import MessageResponse
from storefront.schemas.order import OrderCreate, OrderRead, OrderUpdate
from storefront.services import orders as order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

order_readers = require_roles(Role.CUSTOMER, Role.ADMIN)
admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderRead:
    order = await order_service.create_order(session, payload, current_user)
    await session.commit()
    logger.info("New order created: %s", order.id)
    return OrderRead.model_validate(order)


@router.get("/{user_id}/allOrders", response_model=list[OrderRead])
async def list_orders_for_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(order_readers),
) -> list[OrderRead]:
    order_service.ensure_can_view(user_id, current_user)
    orders = await order_service.list_orders_for_user(session, user_id)
    return [OrderRead.model_validate(order) for order in orders]


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(order_readers),
) -> OrderRead:
    order = await order_service.get_order(session, order_id)
    if not order:
        raise NotFound("Order not found")
    order_service.ensure_can_view(order.user_id, current_user)
    return OrderRead.model_validate(order)


@router.put("/{order_id}", response_model=OrderRead)
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> OrderRead:
    order = await order_service.update_order(session, order_id, payload)
    await session.commit()
    logger.info("Updated order %s", order_id)
    return OrderRead.model_validate(order)


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: str,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> MessageResponse:
    await order_service.delete_order(session, order_id)
    await session.commit()
    logger.info("Deleted order %s", order_id)
    return MessageResponse(message="Order deleted successfully")
