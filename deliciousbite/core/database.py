"""
数据库连接和管理模块
封装 DuckDB 连接、表结构初始化和事务控制

数据库表说明：
- products: 菜品信息
- orders: 订单头（联系方式、金额、状态）
- order_items: 订单明细（下单时的菜品快照）
- logs: 系统操作日志
"""

import duckdb
from pathlib import Path
from typing import Any, Dict, List, Optional, Generator
from contextlib import contextmanager
import threading

from .exceptions import RemoteFailure
from ..config.settings import settings

# 完整的表结构定义
# 金额使用 DECIMAL 避免浮点精度问题，时间使用 ISO-8601 文本
SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS products (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  description TEXT,
  price DECIMAL(10,2) NOT NULL CHECK (price >= 0),
  image_url TEXT,
  category TEXT,
  available BOOLEAN DEFAULT TRUE
);

CREATE INDEX IF NOT EXISTS idx_products_category ON products(category);

CREATE TABLE IF NOT EXISTS orders (
  id TEXT PRIMARY KEY,
  status TEXT CHECK(status IN ('pending','preparing','ready','delivered','cancelled')) NOT NULL,
  customer_name TEXT NOT NULL,
  customer_phone TEXT NOT NULL,
  customer_address TEXT NOT NULL,
  total_amount DECIMAL(10,2) NOT NULL,
  user_id TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  estimated_delivery_time TEXT
);

CREATE INDEX IF NOT EXISTS idx_orders_user ON orders(user_id);

CREATE TABLE IF NOT EXISTS order_items (
  order_id TEXT NOT NULL,
  product_id TEXT NOT NULL,
  name TEXT,
  description TEXT,
  image_url TEXT,
  category TEXT,
  quantity INTEGER NOT NULL CHECK (quantity >= 1),
  price DECIMAL(10,2) NOT NULL,
  special_instructions TEXT
);

CREATE INDEX IF NOT EXISTS idx_order_items_order ON order_items(order_id);

CREATE SEQUENCE IF NOT EXISTS logs_id_seq;
CREATE TABLE IF NOT EXISTS logs (
  log_id INTEGER DEFAULT nextval('logs_id_seq') PRIMARY KEY,
  user_id TEXT,  -- 操作涉及的用户
  actor_id TEXT,  -- 实际执行操作的用户（如管理员）
  action TEXT,  -- 操作类型标识
  detail_json TEXT,  -- 操作详情的结构化数据
  created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_logs_actor ON logs(actor_id);
CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
"""


class CommitGuard:
    """
    调用方与工作线程之间的提交约定

    调用方超时后调用 cancel()，事务在 COMMIT 前通过 begin_commit() 检查；
    两者互斥，保证"调用方收到失败"与"数据已提交"不会同时发生
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.cancelled = False
        self.committing = False

    def cancel(self) -> bool:
        """放弃本次调用，提交已经开始时返回 False"""
        with self._lock:
            if self.committing:
                return False
            self.cancelled = True
            return True

    def begin_commit(self) -> bool:
        """准备提交，调用方已放弃时返回 False"""
        with self._lock:
            if self.cancelled:
                return False
            self.committing = True
            return True


def _rows_to_dicts(cursor) -> List[Dict[str, Any]]:
    """把查询结果转换为字典列表"""
    if cursor.description is None:
        return []
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


class DatabaseManager:
    """数据库管理器，封装所有数据库操作"""

    def __init__(self, database_url: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self.db_path = self._parse_db_path(database_url or settings.database_url)

    @staticmethod
    def _parse_db_path(db_url: str) -> str:
        """从 duckdb:// 形式的URL中取出数据库路径"""
        if db_url.startswith("duckdb://"):
            db_url = db_url[len("duckdb://"):]
        return db_url or ":memory:"

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """获取数据库连接"""
        with self._lock:
            if self._connection is None:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(self.db_path)
                self._init_schema()
            return self._connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """获取数据库连接 - 保持向后兼容"""
        return self.connection

    def _init_schema(self):
        """初始化数据库表结构"""
        try:
            self._connection.execute(SCHEMA_SQL)
        except Exception as e:
            raise RemoteFailure("Failed to initialize schema", cause=e)

    def init_database(self):
        """初始化数据库"""
        self.connection.execute(SCHEMA_SQL)

    @contextmanager
    def transaction(self, guard: Optional[CommitGuard] = None) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        数据库事务上下文管理器

        事务期间持有锁，同一连接上的其他操作会等待事务结束。
        传入 guard 时，调用方已放弃的事务会回滚而不是提交
        """
        with self._lock:
            if guard is not None and guard.cancelled:
                raise RemoteFailure("Transaction abandoned before start")
            conn = self.connection
            conn.execute("BEGIN TRANSACTION")
            try:
                yield conn
                if guard is not None and not guard.begin_commit():
                    raise RemoteFailure("Transaction abandoned before commit")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def fetch_all(self, query: str, params: list = None) -> List[Dict[str, Any]]:
        """执行查询并以字典列表返回结果"""
        with self._lock:
            cursor = self.connection.execute(query, params or [])
            return _rows_to_dicts(cursor)

    def close(self):
        """关闭连接"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

