"""
数据一致性服务测试
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from ..core.exceptions import NotFound, RemoteFailure, Unauthorized, ValidationError
from ..models.base import utc_now
from ..models.cart import CartItem
from ..models.order import CustomerDetails
from ..services.consistency_service import ConsistencyService
from ..services.order_service import OrderLifecycle
from .conftest import run
from .fakes import MemoryStorage

DETAILS = CustomerDetails(name="Alice", phone="5551234567", address="1 Main St")


class TestConsistencyCheck:

    def test_healthy_database(self, container, admin, customer, product_a):
        run(container.orders.place_order([CartItem.from_product(product_a, 2)], DETAILS, customer))

        result = run(container.consistency.check_data_consistency(admin))

        assert result["summary"]["status"] == "healthy"
        assert result["statistics"]["orders"]["by_status"]["pending"] == 1

    def test_admin_only(self, container, staff):
        with pytest.raises(Unauthorized):
            run(container.consistency.check_data_consistency(staff))

    def test_detects_and_removes_incomplete_order(self, admin, customer, product_a):
        """明细写入和补偿删除都失败后遗留的订单头"""
        storage = MemoryStorage(fail_on={("insert", "order_items"), ("delete", "orders")})
        orders = OrderLifecycle(storage)
        with pytest.raises(RemoteFailure) as exc_info:
            run(orders.place_order([CartItem.from_product(product_a, 1)], DETAILS, customer))
        order_id = exc_info.value.details["inconsistent_order_id"]

        storage.fail_on.clear()
        service = ConsistencyService(storage)
        result = run(service.check_data_consistency(admin))

        assert [i["type"] for i in result["issues"]] == ["order_without_items"]
        assert result["issues"][0]["details"]["order_id"] == order_id

        assert run(service.remove_incomplete_order(order_id, admin)) == {"fixed": True, "order_id": order_id}
        assert storage.tables["orders"] == []

    def test_total_mismatch_and_orphans(self, container, admin, customer, product_a, storage):
        order = run(container.orders.place_order([CartItem.from_product(product_a, 1)], DETAILS, customer))
        run(storage.table("orders").update({"id": order.id}, {"total_amount": Decimal("1.00")}))
        run(storage.table("order_items").insert([{
            "order_id": "ghost", "product_id": "prod-a", "quantity": 1, "price": Decimal("2.00"),
        }]))

        result = run(container.consistency.check_data_consistency(admin))

        assert sorted(i["type"] for i in result["issues"]) == ["orphaned_items", "total_mismatch"]

    def test_overdue_warning(self, admin, customer, product_a):
        storage = MemoryStorage()
        orders = OrderLifecycle(storage)
        order = run(orders.place_order([CartItem.from_product(product_a, 1)], DETAILS, customer))
        storage.tables["orders"][0]["estimated_delivery_time"] = (utc_now() - timedelta(hours=3)).isoformat()

        result = run(ConsistencyService(storage).check_data_consistency(admin))

        assert result["warnings"][0]["details"]["order_id"] == order.id
        assert result["summary"]["status"] == "healthy"

    def test_remove_refuses_complete_orders(self, container, admin, customer, product_a):
        order = run(container.orders.place_order([CartItem.from_product(product_a, 1)], DETAILS, customer))

        with pytest.raises(ValidationError):
            run(container.consistency.remove_incomplete_order(order.id, admin))
        with pytest.raises(NotFound):
            run(container.consistency.remove_incomplete_order("missing", admin))
