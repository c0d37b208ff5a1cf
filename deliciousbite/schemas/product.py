"""
菜品相关的请求/响应模式
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List

from ..models.product import Product
from ..utils.formatters import format_currency


class ProductResponse(BaseModel):
    """菜品响应"""
    id: str
    name: str
    description: str
    price: Decimal
    price_display: str = Field(..., description="格式化后的价格")
    image_url: str
    category: str
    available: bool

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            price_display=format_currency(product.price),
            **product.model_dump(),
        )


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total_count: int


class CategoryListResponse(BaseModel):
    categories: List[str]
