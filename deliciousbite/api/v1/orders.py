"""
订单管理路由模块
下单、订单查询和跟踪、状态修改、删除订单
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...models.order import OrderStatus, SortOrder
from ...models.user import Actor
from ...schemas.order import (
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    StatusCountsResponse,
    StatusUpdateRequest,
)
from ...services.authorization import next_statuses
from ...services.container import ServiceContainer
from ...services.order_service import progress
from ..deps import get_container, get_current_actor

router = APIRouter()


def _to_response(order, actor: Actor) -> OrderResponse:
    """员工和管理员的响应里带上可操作的下一步状态"""
    allowed = next_statuses(order.status) if actor.is_staff else []
    return OrderResponse.from_order(order, progress(order.status), allowed)


@router.post("", response_model=OrderResponse, status_code=201)
async def place_order(
    req: PlaceOrderRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """用购物车快照创建订单，金额由服务端重新计算"""
    order = await container.orders.place_order(req.items, req.customer, actor)
    return _to_response(order, actor)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    status: Optional[OrderStatus] = None,
    sort: Optional[SortOrder] = None,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """订单列表，顾客只能看到自己的订单"""
    orders = await container.orders.list_orders(actor, status=status, sort=sort)
    return OrderListResponse(
        orders=[_to_response(o, actor) for o in orders],
        total_count=len(orders),
    )


@router.get("/counts", response_model=StatusCountsResponse)
async def order_counts(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """可见订单按状态计数"""
    return StatusCountsResponse(counts=await container.orders.status_counts(actor))


@router.get("/track", response_model=OrderResponse)
async def track_order(
    q: str = "",
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """按订单号查找订单"""
    order = await container.orders.track_order(q, actor)
    return _to_response(order, actor)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    order = await container.orders.get_order(order_id, actor)
    return _to_response(order, actor)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    req: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """修改订单状态（员工/管理员）"""
    order = await container.orders.update_status(order_id, req.status, actor)
    return _to_response(order, actor)


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """删除订单（管理员）"""
    order = await container.orders.delete_order(order_id, actor)
    return create_success_response({"order_id": order.id}, "Order deleted")
