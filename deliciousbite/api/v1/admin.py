"""
管理员路由模块
数据一致性检查和修复
"""

from fastapi import APIRouter, Depends

from ...models.user import Actor
from ...services.container import ServiceContainer
from ..deps import get_container, get_current_actor

router = APIRouter()


@router.get("/consistency")
async def check_consistency(
    include_warnings: bool = True,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """订单数据一致性检查"""
    return await container.consistency.check_data_consistency(actor, include_warnings)


@router.post("/consistency/orders/{order_id}/remove")
async def remove_incomplete_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """删除没有明细的订单头"""
    return await container.consistency.remove_incomplete_order(order_id, actor)
