"""API router aggregator."""
from fastapi import APIRouter

from storefront.api.routes import auth, issues, orders, products, users
from storefront.core.config import get_settings

api_router = APIRouter(prefix=get_settings().api_prefix)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(products.router)
api_router.include_router(orders.router)
api_router.include_router(issues.router)

__all__ = ["api_router"]
