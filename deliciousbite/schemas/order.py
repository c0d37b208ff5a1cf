"""
订单相关的请求/响应模式
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from ..models.cart import CartItem
from ..models.order import CustomerDetails, Order, OrderStatus
from ..utils.formatters import format_currency, format_date, format_phone_number


class PlaceOrderRequest(BaseModel):
    """下单请求：客户端提交购物车快照和联系方式"""
    items: List[CartItem] = Field(default_factory=list, description="购物车快照")
    customer: CustomerDetails = Field(default_factory=CustomerDetails, description="联系方式")


class StatusUpdateRequest(BaseModel):
    """订单状态修改请求，状态值由服务层校验"""
    status: str = Field(..., description="目标状态")


class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    price: Decimal
    quantity: int
    special_instructions: Optional[str] = None
    line_total: Decimal


class OrderResponse(BaseModel):
    """订单详情响应"""
    id: str = Field(..., description="订单ID")
    status: OrderStatus = Field(..., description="订单状态")
    items: List[OrderItemResponse] = Field(..., description="订单明细")
    item_count: int = Field(..., description="总件数")
    customer_name: str
    customer_phone: str
    customer_address: str
    total_amount: Decimal = Field(..., description="订单总金额")
    total_display: str = Field(..., description="格式化后的金额")
    user_id: str
    created_at: datetime
    created_display: str = Field(..., description="格式化后的下单时间")
    updated_at: datetime
    estimated_delivery_time: Optional[datetime] = None
    progress: float = Field(..., description="跟踪进度 0..1")
    is_terminal: bool = Field(..., description="是否为终态")
    next_statuses: List[OrderStatus] = Field(default_factory=list, description="可以流转到的状态")

    @classmethod
    def from_order(cls, order: Order, progress: float,
                   next_statuses: Optional[List[OrderStatus]] = None) -> "OrderResponse":
        return cls(
            id=order.id,
            status=order.status,
            items=[
                OrderItemResponse(
                    product_id=item.product_id,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    special_instructions=item.special_instructions,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            item_count=order.item_count,
            customer_name=order.customer_name,
            customer_phone=format_phone_number(order.customer_phone),
            customer_address=order.customer_address,
            total_amount=order.total_amount,
            total_display=format_currency(order.total_amount),
            user_id=order.user_id,
            created_at=order.created_at,
            created_display=format_date(order.created_at),
            updated_at=order.updated_at,
            estimated_delivery_time=order.estimated_delivery_time,
            progress=progress,
            is_terminal=order.is_terminal,
            next_statuses=next_statuses or [],
        )


class OrderListResponse(BaseModel):
    """订单列表响应"""
    orders: List[OrderResponse]
    total_count: int


class StatusCountsResponse(BaseModel):
    """按状态统计的订单数量"""
    counts: Dict[str, int]
