"""
菜品相关数据模型
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .base import BaseEntity


class ProductBase(BaseModel):
    """菜品基础字段"""
    name: str = Field(..., min_length=1, max_length=200, description="菜品名称")
    description: str = Field("", max_length=2000, description="菜品描述")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="价格")
    image_url: str = Field("", description="图片URL")
    category: str = Field("", max_length=100, description="分类")
    available: bool = Field(True, description="是否对顾客可见")


class ProductCreate(ProductBase):
    """菜品创建模型"""
    pass


class ProductUpdate(BaseModel):
    """菜品更新模型，只包含需要修改的字段"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    available: Optional[bool] = None


class Product(ProductBase, BaseEntity):
    """菜品完整模型"""
    id: str = Field(..., min_length=1, description="菜品ID")

    @classmethod
    def from_row(cls, row: dict) -> "Product":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            price=row["price"],
            image_url=row.get("image_url") or "",
            category=row.get("category") or "",
            available=bool(row.get("available", True)),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "image_url": self.image_url,
            "category": self.category,
            "available": self.available,
        }
