"""
订单相关数据模型
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum

from .base import BaseEntity, TimestampMixin
from .cart import CartItem


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PENDING = "pending"         # 待处理
    PREPARING = "preparing"     # 制作中
    READY = "ready"             # 待取餐
    DELIVERED = "delivered"     # 已送达（终态）
    CANCELLED = "cancelled"     # 已取消（终态）

    @classmethod
    def terminal(cls) -> List["OrderStatus"]:
        return [cls.DELIVERED, cls.CANCELLED]


class SortOrder(str, Enum):
    """按下单时间排序"""
    NEWEST = "newest"
    OLDEST = "oldest"


class CustomerDetails(BaseModel):
    """下单联系信息（未校验，校验由 OrderLifecycle 统一完成）"""
    name: str = Field("", description="顾客姓名")
    phone: str = Field("", description="联系电话")
    address: str = Field("", description="配送地址")


class Order(BaseEntity, TimestampMixin):
    """订单完整模型

    创建后只有 status 和 updated_at 会变化
    """
    id: str = Field(..., description="订单ID")
    items: List[CartItem] = Field(..., description="下单时的购物车快照")
    status: OrderStatus = Field(OrderStatus.PENDING, description="订单状态")
    customer_name: str = Field(..., description="顾客姓名")
    customer_phone: str = Field(..., description="联系电话")
    customer_address: str = Field(..., description="配送地址")
    total_amount: Decimal = Field(..., ge=0, description="订单总金额")
    user_id: str = Field(..., description="下单用户ID")
    created_at: datetime = Field(..., description="创建时间")
    updated_at: datetime = Field(..., description="更新时间")
    estimated_delivery_time: Optional[datetime] = Field(None, description="预计送达时间")

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        """拒绝未知状态值"""
        if isinstance(v, OrderStatus):
            return v
        try:
            return OrderStatus(v)
        except ValueError:
            raise ValueError(f"unknown order status: {v!r}")

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_terminal(self) -> bool:
        return self.status in OrderStatus.terminal()

    def header_row(self) -> dict:
        """orders 表的行数据"""
        return {
            "id": self.id,
            "status": self.status.value,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_address": self.customer_address,
            "total_amount": self.total_amount,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "estimated_delivery_time": (
                self.estimated_delivery_time.isoformat()
                if self.estimated_delivery_time else None
            ),
        }

    def item_rows(self) -> List[dict]:
        """order_items 表的行数据，保存菜品快照"""
        return [
            {
                "order_id": self.id,
                "product_id": item.product_id,
                "name": item.name,
                "description": item.description,
                "image_url": item.image_url,
                "category": item.category,
                "quantity": item.quantity,
                "price": item.price,
                "special_instructions": item.special_instructions,
            }
            for item in self.items
        ]

    @classmethod
    def from_rows(cls, header: dict, item_rows: List[dict]) -> "Order":
        """从 orders + order_items 行数据还原订单"""
        items = [
            CartItem(
                product_id=row["product_id"],
                name=row.get("name") or "",
                description=row.get("description") or "",
                price=row["price"],
                image_url=row.get("image_url") or "",
                category=row.get("category") or "",
                quantity=row["quantity"],
                special_instructions=row.get("special_instructions"),
            )
            for row in item_rows
        ]
        return cls(
            id=header["id"],
            items=items,
            status=header["status"],
            customer_name=header["customer_name"],
            customer_phone=header["customer_phone"],
            customer_address=header["customer_address"],
            total_amount=header["total_amount"],
            user_id=header["user_id"],
            created_at=header["created_at"],
            updated_at=header["updated_at"],
            estimated_delivery_time=header.get("estimated_delivery_time"),
        )
