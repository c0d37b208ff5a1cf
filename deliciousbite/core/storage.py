"""
存储协作方接口
核心业务只通过这里定义的异步 CRUD 接口访问持久化数据

主要内容：
- StorageClient / Table: 按表名访问的异步 select/insert/update/delete
- WriteOperation: 可在同一事务中批量执行的写操作
- DuckDBStorage: 基于 DatabaseManager 的实现，阻塞调用放到工作线程执行，
  并受 remote_timeout_seconds 限制

所有协作方错误（包括超时）都会转换为 RemoteFailure。
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .database import CommitGuard, DatabaseManager
from .exceptions import BaseApplicationError, RemoteFailure
from ..config.settings import settings

# 允许访问的表及其列
TABLE_COLUMNS: Dict[str, tuple] = {
    "products": (
        "id", "name", "description", "price", "image_url", "category", "available",
    ),
    "orders": (
        "id", "status", "customer_name", "customer_phone", "customer_address",
        "total_amount", "user_id", "created_at", "updated_at", "estimated_delivery_time",
    ),
    "order_items": (
        "order_id", "product_id", "name", "description", "image_url", "category",
        "quantity", "price", "special_instructions",
    ),
    "logs": (
        "log_id", "user_id", "actor_id", "action", "detail_json", "created_at",
    ),
}


def _check_columns(table: str, columns) -> None:
    if table not in TABLE_COLUMNS:
        raise ValueError(f"unknown table: {table}")
    unknown = [c for c in columns if c not in TABLE_COLUMNS[table]]
    if unknown:
        raise ValueError(f"unknown columns for {table}: {', '.join(unknown)}")


@dataclass
class WriteOperation:
    """一次写操作，action 取 insert / update / delete"""
    table: str
    action: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def insert(cls, table: str, rows: List[Dict[str, Any]]) -> "WriteOperation":
        return cls(table=table, action="insert", rows=list(rows))

    @classmethod
    def update(cls, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> "WriteOperation":
        return cls(table=table, action="update", filters=dict(filters), values=dict(values))

    @classmethod
    def delete(cls, table: str, filters: Dict[str, Any]) -> "WriteOperation":
        return cls(table=table, action="delete", filters=dict(filters))


class Table:
    """单张表的访问句柄"""

    def __init__(self, storage: "StorageClient", name: str):
        _check_columns(name, ())
        self.storage = storage
        self.name = name

    async def select(self, filters: Optional[Dict[str, Any]] = None,
                     order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.storage.select(self.name, filters, order_by)

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await self.storage.insert(self.name, rows)

    async def update(self, filters: Dict[str, Any], values: Dict[str, Any]) -> int:
        return await self.storage.update(self.name, filters, values)

    async def delete(self, filters: Dict[str, Any]) -> int:
        return await self.storage.delete(self.name, filters)


class StorageClient(ABC):
    """存储协作方的最小接口"""

    supports_transactions: bool = False

    def table(self, name: str) -> Table:
        return Table(self, name)

    @abstractmethod
    async def select(self, table: str, filters: Optional[Dict[str, Any]] = None,
                     order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        """按等值条件查询，order_by 以 '-' 开头表示降序"""

    @abstractmethod
    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """插入多行，返回插入的数据"""

    @abstractmethod
    async def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> int:
        """更新满足条件的行，返回受影响行数"""

    @abstractmethod
    async def delete(self, table: str, filters: Dict[str, Any]) -> int:
        """删除满足条件的行，返回受影响行数"""

    async def atomic(self, operations: List[WriteOperation]) -> None:
        """在同一事务中执行多个写操作，仅 supports_transactions 为 True 时可用"""
        raise NotImplementedError(f"{type(self).__name__} does not support transactions")


def _consume_result(future: "asyncio.Future") -> None:
    # 调用方超时放弃后，工作线程的异常不再有人读取
    if not future.cancelled():
        future.exception()


def _where_clause(filters: Optional[Dict[str, Any]]) -> tuple:
    if not filters:
        return "", []
    conditions = []
    params = []
    for column, value in filters.items():
        if value is None:
            conditions.append(f"{column} IS NULL")
        else:
            conditions.append(f"{column} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(conditions), params


class DuckDBStorage(StorageClient):
    """基于 DuckDB 的存储实现"""

    supports_transactions = True

    def __init__(self, db: DatabaseManager, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout if timeout is not None else settings.remote_timeout_seconds

    async def _call(self, description: str, fn: Callable, *args) -> Any:
        """
        在工作线程中执行阻塞调用，超时或失败时抛出 RemoteFailure

        超时后通过 CommitGuard 放弃尚未提交的事务；如果提交已经开始，
        则等待其完成并返回真实结果
        """
        guard = CommitGuard()
        work = asyncio.ensure_future(asyncio.to_thread(fn, *args, guard=guard))
        work.add_done_callback(_consume_result)
        try:
            try:
                return await asyncio.wait_for(asyncio.shield(work), timeout=self.timeout)
            except asyncio.TimeoutError:
                if guard.cancel():
                    raise
                return await work
        except asyncio.TimeoutError as e:
            raise RemoteFailure(
                f"{description} timed out after {self.timeout}s",
                details={"operation": description, "timeout": self.timeout},
                cause=e,
            )
        except BaseApplicationError:
            raise
        except Exception as e:
            raise RemoteFailure(
                f"{description} failed: {e}",
                details={"operation": description},
                cause=e,
            )

    async def select(self, table, filters=None, order_by=None):
        _check_columns(table, filters or {})
        if order_by:
            _check_columns(table, [order_by.lstrip("-")])
        return await self._call(f"select {table}", self._select_sync, table, filters, order_by)

    async def insert(self, table, rows):
        for row in rows:
            _check_columns(table, row)
        return await self._call(f"insert {table}", self._insert_sync, table, rows)

    async def update(self, table, filters, values):
        _check_columns(table, list(filters) + list(values))
        return await self._call(f"update {table}", self._update_sync, table, filters, values)

    async def delete(self, table, filters):
        _check_columns(table, filters)
        return await self._call(f"delete {table}", self._delete_sync, table, filters)

    async def atomic(self, operations):
        for op in operations:
            _check_columns(op.table, list(op.filters) + list(op.values))
            for row in op.rows:
                _check_columns(op.table, row)
        await self._call("transaction", self._atomic_sync, operations)

    def _select_sync(self, table, filters, order_by, guard=None):
        where, params = _where_clause(filters)
        query = f"SELECT * FROM {table}{where}"
        if order_by:
            direction = "DESC" if order_by.startswith("-") else "ASC"
            query += f" ORDER BY {order_by.lstrip('-')} {direction}"
        return self.db.fetch_all(query, params)

    def _insert_sync(self, table, rows, guard=None):
        with self.db.transaction(guard) as conn:
            for row in rows:
                self._insert_row(conn, table, row)
        return [dict(row) for row in rows]

    def _update_sync(self, table, filters, values, guard=None):
        with self.db.transaction(guard) as conn:
            return self._update_rows(conn, table, filters, values)

    def _delete_sync(self, table, filters, guard=None):
        with self.db.transaction(guard) as conn:
            return self._delete_rows(conn, table, filters)

    def _atomic_sync(self, operations, guard=None):
        with self.db.transaction(guard) as conn:
            for op in operations:
                if op.action == "insert":
                    for row in op.rows:
                        self._insert_row(conn, op.table, row)
                elif op.action == "update":
                    self._update_rows(conn, op.table, op.filters, op.values)
                elif op.action == "delete":
                    self._delete_rows(conn, op.table, op.filters)
                else:
                    raise ValueError(f"unknown write action: {op.action}")

    @staticmethod
    def _insert_row(conn, table, row):
        columns = list(row)
        placeholders = ", ".join("?" for _ in columns)
        conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [row[c] for c in columns],
        )

    @staticmethod
    def _update_rows(conn, table, filters, values) -> int:
        if not values:
            return 0
        assignments = ", ".join(f"{column} = ?" for column in values)
        where, params = _where_clause(filters)
        result = conn.execute(
            f"UPDATE {table} SET {assignments}{where}",
            list(values.values()) + params,
        ).fetchone()
        return int(result[0]) if result else 0

    @staticmethod
    def _delete_rows(conn, table, filters) -> int:
        where, params = _where_clause(filters)
        result = conn.execute(f"DELETE FROM {table}{where}", params).fetchone()
        return int(result[0]) if result else 0
