"""
数据一致性检查和修复服务
检查订单头与明细是否匹配，并清理下单补偿失败后遗留的订单头

检查项：
- 没有任何明细的订单头（错误）
- 订单金额与明细合计不一致（错误）
- 找不到订单头的明细（错误）
- 超过预计送达时间仍未完成的订单（警告）
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.exceptions import NotFound, ValidationError
from ..core.storage import StorageClient
from ..models.base import utc_now
from ..models.order import OrderStatus
from ..models.user import Actor
from .authorization import require_admin
from .log_service import OperationLogger

# 超过预计送达时间多久仍未完成视为异常
OVERDUE_GRACE = timedelta(hours=2)


class ConsistencyCheckResult:
    """一致性检查结果"""

    def __init__(self):
        self.issues: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []
        self.statistics: Dict[str, Any] = {}

    def add_issue(self, issue_type: str, description: str, details: Dict[str, Any] = None):
        """添加问题"""
        self.issues.append({
            'type': issue_type,
            'description': description,
            'details': details or {},
            'severity': 'error',
        })

    def add_warning(self, warning_type: str, description: str, details: Dict[str, Any] = None):
        """添加警告"""
        self.warnings.append({
            'type': warning_type,
            'description': description,
            'details': details or {},
            'severity': 'warning',
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issues': self.issues,
            'warnings': self.warnings,
            'statistics': self.statistics,
            'summary': {
                'total_issues': len(self.issues),
                'total_warnings': len(self.warnings),
                'status': 'healthy' if not self.issues else 'issues_found',
                'checked_at': utc_now().isoformat(),
            }
        }


class ConsistencyService:
    """数据一致性服务（管理员）"""

    def __init__(self, storage: StorageClient, operation_logger: Optional[OperationLogger] = None):
        self.storage = storage
        self.oplog = operation_logger or OperationLogger(storage)

    async def check_data_consistency(self, actor: Optional[Actor],
                                     include_warnings: bool = True) -> Dict[str, Any]:
        """
        全面的数据一致性检查

        直接读取原始行数据，不经过 Order 模型，损坏的数据同样能被检查到
        """
        require_admin(actor)
        headers = await self.storage.table("orders").select(order_by="created_at")
        item_rows = await self.storage.table("order_items").select()

        items_by_order: Dict[str, List[dict]] = {}
        for row in item_rows:
            items_by_order.setdefault(row["order_id"], []).append(row)

        result = ConsistencyCheckResult()
        result.statistics = self._collect_statistics(headers, item_rows)
        self._check_orders(headers, items_by_order, result)
        self._check_orphaned_items(headers, items_by_order, result)
        if include_warnings:
            self._check_overdue_orders(headers, result)

        await self.oplog.log("consistency_check", actor.id, detail={
            "total_issues": len(result.issues),
            "total_warnings": len(result.warnings),
        })
        return result.to_dict()

    @staticmethod
    def _collect_statistics(headers: List[dict], item_rows: List[dict]) -> Dict[str, Any]:
        """收集基础统计信息"""
        by_status = {status.value: 0 for status in OrderStatus}
        for header in headers:
            if header.get("status") in by_status:
                by_status[header["status"]] += 1
        delivered_revenue = sum(
            (Decimal(h["total_amount"]) for h in headers if h.get("status") == OrderStatus.DELIVERED.value),
            Decimal("0"),
        )
        return {
            "orders": {"total": len(headers), "by_status": by_status},
            "order_items": {"total": len(item_rows)},
            "delivered_revenue": str(delivered_revenue),
        }

    @staticmethod
    def _check_orders(headers: List[dict], items_by_order: Dict[str, List[dict]],
                      result: ConsistencyCheckResult):
        """检查订单头和明细是否匹配"""
        for header in headers:
            items = items_by_order.get(header["id"], [])
            if not items:
                result.add_issue(
                    'order_without_items',
                    f"Order {header['id']} has no line items",
                    {'order_id': header['id'], 'user_id': header.get('user_id')}
                )
                continue
            computed = sum((Decimal(i["price"]) * i["quantity"] for i in items), Decimal("0"))
            if computed != Decimal(header["total_amount"]):
                result.add_issue(
                    'total_mismatch',
                    f"Order {header['id']} total does not match its line items",
                    {
                        'order_id': header['id'],
                        'total_amount': str(header['total_amount']),
                        'items_total': str(computed),
                    }
                )

    @staticmethod
    def _check_orphaned_items(headers: List[dict], items_by_order: Dict[str, List[dict]],
                              result: ConsistencyCheckResult):
        """检查孤儿明细"""
        known = {h["id"] for h in headers}
        for order_id, items in items_by_order.items():
            if order_id not in known:
                result.add_issue(
                    'orphaned_items',
                    f"{len(items)} line items reference missing order {order_id}",
                    {'order_id': order_id, 'item_count': len(items)}
                )

    @staticmethod
    def _check_overdue_orders(headers: List[dict], result: ConsistencyCheckResult):
        """检查长时间未完成的订单（警告级别）"""
        cutoff = utc_now() - OVERDUE_GRACE
        active = {s.value for s in OrderStatus if s not in OrderStatus.terminal()}
        for header in headers:
            eta = header.get("estimated_delivery_time")
            if header.get("status") in active and eta and datetime.fromisoformat(eta) < cutoff:
                result.add_warning(
                    'overdue_order',
                    f"Order {header['id']} is still {header['status']} long after its delivery estimate",
                    {'order_id': header['id'], 'status': header['status'], 'estimated_delivery_time': eta}
                )

    async def remove_incomplete_order(self, order_id: str, actor: Optional[Actor]) -> Dict[str, Any]:
        """
        删除没有明细的订单头

        下单时明细写入失败且补偿删除也失败时，RemoteFailure 会带上
        inconsistent_order_id，管理员用这个接口清理
        """
        require_admin(actor)
        headers = await self.storage.table("orders").select({"id": order_id})
        if not headers:
            raise NotFound("Order", order_id)
        items = await self.storage.table("order_items").select({"order_id": order_id})
        if items:
            raise ValidationError(
                f"Order {order_id} has line items and is not incomplete",
                details={"order_id": order_id, "item_count": len(items)},
            )

        await self.storage.table("orders").delete({"id": order_id})

        await self.oplog.log("consistency_fix", actor.id, headers[0].get("user_id"), {
            "order_id": order_id,
            "fix": "remove_incomplete_order",
        })
        return {"fixed": True, "order_id": order_id}
