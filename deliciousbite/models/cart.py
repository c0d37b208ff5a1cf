"""
购物车相关数据模型

购物车命令是一个封闭的命令集合，由 services.cart_service.reduce_cart 统一处理。
"""

from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .product import Product

MAX_ITEM_QUANTITY = 10


class CartItem(BaseModel):
    """购物车条目：菜品快照 + 数量 + 备注"""
    product_id: str = Field(..., min_length=1, description="菜品ID")
    name: str = Field(..., description="菜品名称")
    description: str = Field("", description="菜品描述")
    price: Decimal = Field(..., ge=0, description="单价")
    image_url: str = Field("", description="图片URL")
    category: str = Field("", description="分类")
    available: bool = Field(True, description="是否上架")
    quantity: int = Field(..., ge=1, le=MAX_ITEM_QUANTITY, description="数量")
    special_instructions: Optional[str] = Field(None, description="特殊要求")

    @classmethod
    def from_product(cls, product: Product, quantity: int,
                     special_instructions: Optional[str] = None) -> "CartItem":
        return cls(
            product_id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            image_url=product.image_url,
            category=product.category,
            available=product.available,
            quantity=quantity,
            special_instructions=special_instructions,
        )

    @property
    def line_total(self) -> Decimal:
        """小计"""
        return self.price * self.quantity


class AddItem(BaseModel):
    kind: Literal["add"] = "add"
    item: CartItem


class RemoveItem(BaseModel):
    kind: Literal["remove"] = "remove"
    product_id: str


class UpdateQuantity(BaseModel):
    kind: Literal["update_quantity"] = "update_quantity"
    product_id: str
    quantity: int


class UpdateInstructions(BaseModel):
    kind: Literal["update_instructions"] = "update_instructions"
    product_id: str
    instructions: str


class ClearCart(BaseModel):
    kind: Literal["clear"] = "clear"


CartCommand = Annotated[
    Union[AddItem, RemoveItem, UpdateQuantity, UpdateInstructions, ClearCart],
    Field(discriminator="kind"),
]

# 持久化格式：CartItem 列表
cart_items_adapter = TypeAdapter(List[CartItem])
