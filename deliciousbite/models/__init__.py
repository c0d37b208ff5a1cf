"""
Data models.
"""

from .base import BaseEntity, TimestampMixin, utc_now, quantize_money
from .user import Actor, UserRole
from .product import Product, ProductCreate, ProductUpdate
from .cart import (
    CartItem,
    CartCommand,
    AddItem,
    RemoveItem,
    UpdateQuantity,
    UpdateInstructions,
    ClearCart,
    MAX_ITEM_QUANTITY,
)
from .order import Order, OrderStatus, CustomerDetails, SortOrder

__all__ = [
    "BaseEntity",
    "TimestampMixin",
    "utc_now",
    "quantize_money",
    "Actor",
    "UserRole",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "CartItem",
    "CartCommand",
    "AddItem",
    "RemoveItem",
    "UpdateQuantity",
    "UpdateInstructions",
    "ClearCart",
    "MAX_ITEM_QUANTITY",
    "Order",
    "OrderStatus",
    "CustomerDetails",
    "SortOrder",
]
