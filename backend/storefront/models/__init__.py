"""SQLAlchemy models exposed for metadata creation and imports."""
from .enums import IssueStatus, OrderStatus, Role
from .issue import Issue
from .order import Order, OrderItem
from .product import Product
from .user import User

__all__ = ["User", "Product", "Order", "OrderItem", "Issue", "Role", "OrderStatus", "IssueStatus"]
