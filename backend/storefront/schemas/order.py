"""Pydantic schemas for orders."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.enums import OrderStatus
from storefront.schemas.product import ProductRead


class OrderItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(..., min_length=1)
    total_price: float = Field(..., ge=0)


class OrderUpdate(BaseModel):
    status: OrderStatus | None = None
    total_price: float | None = Field(default=None, ge=0)


class OrderItemRead(BaseModel):
    product_id: str | None
    quantity: int
    product: ProductRead | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: str
    user_id: str
    total_price: float
    status: OrderStatus
    items: list[OrderItemRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
