"""
日志查询路由模块
管理员查看全部操作日志，其他用户查看与自己相关的日志
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...models.user import Actor
from ...services.container import ServiceContainer
from ..deps import get_container, get_current_actor

router = APIRouter()


@router.get("")
async def list_logs(
    action: Optional[str] = None,
    page: int = 1,
    size: int = 20,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """操作日志，按时间倒序分页"""
    page = max(page, 1)
    size = max(1, min(size, 100))
    logs = await container.oplog.list_logs(actor, action=action)
    offset = (page - 1) * size
    return {
        "logs": logs[offset:offset + size],
        "total": len(logs),
        "page": page,
        "size": size,
    }
