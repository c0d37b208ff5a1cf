"""
API routes and endpoints.
"""

from fastapi import APIRouter
from .v1 import admin, logs, orders, products

api_router = APIRouter()

# 包含所有v1路由
api_router.include_router(products.router, prefix="/products", tags=["菜品"])
api_router.include_router(orders.router, prefix="/orders", tags=["订单"])
api_router.include_router(logs.router, prefix="/logs", tags=["日志"])
api_router.include_router(admin.router, prefix="/admin", tags=["管理"])
