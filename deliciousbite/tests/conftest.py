"""
测试配置文件
提供测试所需的fixtures和配置
"""

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from ..app import create_app
from ..config.settings import Settings
from ..core.database import DatabaseManager
from ..core.storage import DuckDBStorage
from ..models.product import Product
from ..models.user import Actor, UserRole
from ..services.container import ServiceContainer


def run(coro):
    """在同步测试中执行异步服务调用"""
    return asyncio.run(coro)


@pytest.fixture
def test_settings():
    """测试配置：内存数据库，较短的超时"""
    return Settings(
        database_url="duckdb://:memory:",
        jwt_secret_key="test-secret-key",
        api_title="DeliciousBite API (Test)",
        api_version="1.0.0-test",
        remote_timeout_seconds=5.0,
        cart_storage_path=None,
        debug=True,
    )


@pytest.fixture
def test_db(test_settings):
    """测试数据库"""
    db_manager = DatabaseManager(test_settings.database_url)
    db_manager.init_database()

    yield db_manager

    # 清理
    db_manager.close()


@pytest.fixture
def storage(test_db, test_settings):
    return DuckDBStorage(test_db, timeout=test_settings.remote_timeout_seconds)


@pytest.fixture
def container(test_settings, test_db, storage):
    """服务容器"""
    return ServiceContainer(test_settings, db=test_db, storage=storage)


@pytest.fixture
def customer():
    return Actor(id="customer-1", role=UserRole.CUSTOMER, name="Alice")


@pytest.fixture
def other_customer():
    return Actor(id="customer-2", role=UserRole.CUSTOMER, name="Bob")


@pytest.fixture
def staff():
    return Actor(id="staff-1", role=UserRole.STAFF, name="Kitchen")


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=UserRole.ADMIN, name="Owner")


@pytest.fixture
def product_a():
    return Product(
        id="prod-a",
        name="Margherita Pizza",
        description="Tomato, mozzarella and basil",
        price=Decimal("12.50"),
        category="Pizza",
    )


@pytest.fixture
def product_b():
    return Product(
        id="prod-b",
        name="Garlic Bread",
        description="Toasted with herb butter",
        price=Decimal("4.00"),
        category="Sides",
    )


@pytest.fixture
def hidden_product():
    return Product(
        id="prod-hidden",
        name="Seasonal Soup",
        description="Not on the menu today",
        price=Decimal("6.25"),
        category="Soups",
        available=False,
    )


@pytest.fixture
def sample_products(storage, product_a, product_b, hidden_product):
    """示例菜品"""
    products = [product_a, product_b, hidden_product]
    run(storage.table("products").insert([p.to_row() for p in products]))
    return products


@pytest.fixture
def customer_details():
    return {"name": "Alice Smith", "phone": "(555) 123-4567", "address": "1 Main St"}


@pytest.fixture
def app_instance(test_settings, container):
    """测试应用"""
    return create_app(test_settings, container)


@pytest.fixture
def client(app_instance):
    """测试客户端"""
    with TestClient(app_instance) as test_client:
        yield test_client


def _headers(container, actor):
    token = container.security.create_jwt_token(actor)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(container, customer):
    """顾客认证请求头"""
    return _headers(container, customer)


@pytest.fixture
def other_headers(container, other_customer):
    return _headers(container, other_customer)


@pytest.fixture
def staff_headers(container, staff):
    return _headers(container, staff)


@pytest.fixture
def admin_headers(container, admin):
    """管理员认证请求头"""
    return _headers(container, admin)
