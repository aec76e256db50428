"""Route modules for the Storefront API."""
from . import auth, issues, orders, products, users

__all__ = ["auth", "users", "products", "orders", "issues"]
