"""Service layer for order persistence."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.errors import Forbidden, NotFound
from storefront.models.enums import Role
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.order import OrderCreate, OrderUpdate


def _with_items():
    return selectinload(Order.items).selectinload(OrderItem.product)


def ensure_can_view(order_owner_id: str, actor: User) -> None:
    if actor.role == Role.CUSTOMER and order_owner_id != actor.id:
        raise Forbidden("Customers can only access their own orders")


async def get_order(session: AsyncSession, order_id: str) -> Order | None:
    result = await session.execute(
        select(Order)
        .options(_with_items())
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_orders_for_user(session: AsyncSession, user_id: str) -> list[Order]:
    result = await session.execute(
        select(Order)
        .options(_with_items())
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().unique().all())


async def create_order(session: AsyncSession, data: OrderCreate, owner: User) -> Order:
    product_ids = {item.product_id for item in data.items}
    result = await session.execute(select(Product.id).where(Product.id.in_(product_ids)))
    missing = product_ids - set(result.scalars().all())
    if missing:
        raise NotFound(f"Product not found: {', '.join(sorted(missing))}")

    order = Order(
        user_id=owner.id,
        total_price=data.total_price,
        items=[OrderItem(product_id=item.product_id, quantity=item.quantity) for item in data.items],
    )
    session.add(order)
    await session.flush()
    # Reload so the response carries populated products.
    return await get_order(session, order.id)


async def update_order(session: AsyncSession, order_id: str, data: OrderUpdate) -> Order:
    order = await get_order(session, order_id)
    if not order:
        raise NotFound("Order not found")
    if data.status is not None:
        order.status = data.status
    if data.total_price is not None:
        order.total_price = data.total_price
    await session.flush()
    return order


async def delete_order(session: AsyncSession, order_id: str) -> None:
    order = await get_order(session, order_id)
    if not order:
        raise NotFound("Order not found")
    await session.delete(order)
    await session.flush()
