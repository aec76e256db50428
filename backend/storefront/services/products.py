"""Service layer for catalog persistence."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import Forbidden, NotFound
from storefront.models.enums import Role
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.product import ProductCreate, ProductUpdate


async def list_products(session: AsyncSession) -> list[Product]:
    result = await session.execute(select(Product).order_by(Product.created_at.desc()))
    return list(result.scalars().all())


async def get_product(session: AsyncSession, product_id: str) -> Product | None:
    result = await session.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def create_product(session: AsyncSession, data: ProductCreate, owner: User) -> Product:
    product = Product(**data.model_dump(), created_by=owner.id)
    session.add(product)
    await session.flush()
    return product


async def _get_editable_product(session: AsyncSession, product_id: str, actor: User) -> Product:
    product = await get_product(session, product_id)
    if not product:
        raise NotFound("Product not found")
    # Suppliers manage only their own listings.
    if actor.role == Role.SUPPLIER and product.created_by != actor.id:
        raise Forbidden("Suppliers can only modify their own products")
    return product


async def update_product(session: AsyncSession, product_id: str, data: ProductUpdate, actor: User) -> Product:
    product = await _get_editable_product(session, product_id, actor)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)
    await session.flush()
    return product


async def toggle_product(session: AsyncSession, product_id: str, actor: User) -> Product:
    product = await _get_editable_product(session, product_id, actor)
    product.is_active = not product.is_active
    await session.flush()
    return product


async def delete_product(session: AsyncSession, product_id: str, actor: User) -> None:
    product = await _get_editable_product(session, product_id, actor)
    await session.delete(product)
    await session.flush()
