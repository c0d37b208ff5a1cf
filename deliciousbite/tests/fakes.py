"""
测试用的存储协作方替身
"""

import copy
from typing import Any, Dict, List, Optional, Set

from ..core.exceptions import RemoteFailure
from ..core.storage import StorageClient


class MemoryStorage(StorageClient):
    """
    不支持事务的内存存储

    fail_on 中的 (action, table) 调用会抛出 RemoteFailure，
    calls 记录所有调用，便于断言"没有发生任何存储调用"；
    selects 记录每次查询的 (table, filters)
    """

    supports_transactions = False

    def __init__(self, fail_on: Optional[Set[tuple]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_on = set(fail_on or ())
        self.calls: List[tuple] = []
        self.selects: List[tuple] = []

    def _check(self, action: str, table: str) -> None:
        self.calls.append((action, table))
        if (action, table) in self.fail_on:
            raise RemoteFailure(f"{action} {table} failed", details={"operation": f"{action} {table}"})

    @staticmethod
    def _matches(row, filters) -> bool:
        return all(row.get(k) == v for k, v in (filters or {}).items())

    async def select(self, table, filters=None, order_by=None):
        self._check("select", table)
        self.selects.append((table, dict(filters or {})))
        rows = [copy.deepcopy(r) for r in self.tables.get(table, []) if self._matches(r, filters)]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by.lstrip("-")), reverse=order_by.startswith("-"))
        return rows

    async def insert(self, table, rows):
        self._check("insert", table)
        self.tables.setdefault(table, []).extend(copy.deepcopy(r) for r in rows)
        return [dict(r) for r in rows]

    async def update(self, table, filters, values):
        self._check("update", table)
        count = 0
        for row in self.tables.get(table, []):
            if self._matches(row, filters):
                row.update(values)
                count += 1
        return count

    async def delete(self, table, filters):
        self._check("delete", table)
        before = self.tables.get(table, [])
        kept = [r for r in before if not self._matches(r, filters)]
        self.tables[table] = kept
        return len(before) - len(kept)
