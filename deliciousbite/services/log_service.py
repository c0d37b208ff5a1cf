"""
操作日志服务
业务操作完成后把结构化的操作记录写入 logs 表

日志写入失败不影响已经成功的业务操作，只在控制台输出
"""

import json
from typing import Any, Dict, List, Optional

from ..core.exceptions import RemoteFailure
from ..core.storage import StorageClient
from ..models.base import utc_now
from ..models.user import Actor, UserRole


class OperationLogger:
    """操作日志"""

    def __init__(self, storage: StorageClient):
        self.storage = storage

    async def log(self, action: str, actor_id: Optional[str],
                  user_id: Optional[str] = None,
                  detail: Optional[Dict[str, Any]] = None) -> None:
        """写入一条操作日志"""
        row = {
            "user_id": user_id,
            "actor_id": actor_id,
            "action": action,
            "detail_json": json.dumps(detail or {}, ensure_ascii=False, default=str),
            "created_at": utc_now().isoformat(),
        }
        try:
            await self.storage.table("logs").insert([row])
        except RemoteFailure as e:
            # 如果连日志都写不了，就只能打印到控制台
            print(f"Failed to write operation log {action}: {e.message}")

    async def list_logs(self, actor: Actor, action: Optional[str] = None) -> List[Dict[str, Any]]:
        """管理员查看全部日志，其他用户只能查看与自己相关的日志，按时间倒序"""
        filters = {"action": action} if action else None
        rows = await self.storage.table("logs").select(filters, order_by="-created_at")
        if actor.role != UserRole.ADMIN:
            rows = [r for r in rows if actor.id in (r.get("actor_id"), r.get("user_id"))]
        result = []
        for row in rows:
            try:
                detail = json.loads(row.get("detail_json") or "{}")
            except ValueError:
                detail = {"raw": row.get("detail_json")}
            result.append({
                "log_id": row.get("log_id"),
                "user_id": row.get("user_id"),
                "actor_id": row.get("actor_id"),
                "action": row.get("action"),
                "detail": detail,
                "created_at": row.get("created_at"),
            })
        return result
