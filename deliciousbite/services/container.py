"""
服务容器
应用启动时显式创建所有服务并注入到接口层，关闭时释放数据库连接
"""

from typing import Optional

from ..config.settings import Settings, settings as default_settings
from ..core.database import DatabaseManager
from ..core.security import SecurityManager
from ..core.storage import DuckDBStorage, StorageClient
from .cart_service import CartStore, JsonFileKeyValueStore, MemoryKeyValueStore
from .consistency_service import ConsistencyService
from .log_service import OperationLogger
from .order_service import OrderLifecycle
from .product_service import ProductCatalog


class ServiceContainer:
    """持有一次应用生命周期内的全部服务"""

    def __init__(self, config: Optional[Settings] = None,
                 db: Optional[DatabaseManager] = None,
                 storage: Optional[StorageClient] = None):
        self.config = config or default_settings
        self.db = db or DatabaseManager(self.config.database_url)
        self.storage = storage or DuckDBStorage(self.db, timeout=self.config.remote_timeout_seconds)
        self.security = SecurityManager(self.config)
        self.oplog = OperationLogger(self.storage)
        self.products = ProductCatalog(self.storage, self.oplog)
        self.consistency = ConsistencyService(self.storage, self.oplog)
        # 服务端不持有购物车，下单时由客户端提交购物车快照
        self.orders = OrderLifecycle(self.storage, operation_logger=self.oplog)

    def create_cart(self, storage_path: Optional[str] = None) -> CartStore:
        """创建客户端购物车，配置了 cart_storage_path 时持久化到文件"""
        path = storage_path or self.config.cart_storage_path
        kv_store = JsonFileKeyValueStore(path) if path else MemoryKeyValueStore()
        return CartStore(kv_store, self.config.cart_storage_key, self.config.max_item_quantity)

    def create_client_orders(self, cart: CartStore) -> OrderLifecycle:
        """客户端使用的订单服务，下单成功后清空绑定的购物车"""
        return OrderLifecycle(self.storage, cart=cart, operation_logger=self.oplog)

    def startup(self) -> None:
        self.db.init_database()

    def shutdown(self) -> None:
        self.db.close()
