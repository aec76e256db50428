"""Product catalog endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import get_db, require_roles
from storefront.core.errors import NotFound
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.auth import MessageResponse
from storefront.schemas.product import ProductCreate, ProductRead, ProductUpdate
from storefront.services import products as product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

catalog_managers = require_roles(Role.ADMIN, Role.SUPPLIER)


@router.get("/", response_model=list[ProductRead])
async def list_products(session: AsyncSession = Depends(get_db)) -> list[ProductRead]:
    products = await product_service.list_products(session)
    return [ProductRead.model_validate(product) for product in products]


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(catalog_managers),
) -> ProductRead:
    product = await product_service.create_product(session, payload, current_user)
    await session.commit()
    logger.info("New product created: %s", product.id)
    return ProductRead.model_validate(product)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: str, session: AsyncSession = Depends(get_db)) -> ProductRead:
    product = await product_service.get_product(session, product_id)
    if not product:
        raise NotFound("Product not found")
    return ProductRead.model_validate(product)


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(catalog_managers),
) -> ProductRead:
    product = await product_service.update_product(session, product_id, payload, current_user)
    await session.commit()
    logger.info("Updated product %s", product_id)
    return ProductRead.model_validate(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(catalog_managers),
) -> MessageResponse:
    await product_service.delete_product(session, product_id, current_user)
    await session.commit()
    logger.info("Deleted product %s", product_id)
    return MessageResponse(message="Product deleted successfully")


@router.patch("/{product_id}/toggle", response_model=ProductRead)
async def toggle_product(
    product_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(catalog_managers),
) -> ProductRead:
    product = await product_service.toggle_product(session, product_id, current_user)
    await session.commit()
    logger.info("Product %s is now %s", product_id, "active" if product.is_active else "inactive")
    return ProductRead.model_validate(product)
