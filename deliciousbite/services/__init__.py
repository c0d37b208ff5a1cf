"""
Business logic services.
Contains service layer implementations for core business operations.
"""

from .authorization import can_transition, can_view, is_valid_transition, next_statuses
from .cart_service import CartStore, JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .consistency_service import ConsistencyService
from .container import ServiceContainer
from .log_service import OperationLogger
from .order_service import OrderLifecycle
from .product_service import ProductCatalog

__all__ = [
    "can_transition",
    "can_view",
    "is_valid_transition",
    "next_statuses",
    "CartStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "ConsistencyService",
    "ServiceContainer",
    "OperationLogger",
    "OrderLifecycle",
    "ProductCatalog",
]
