"""
菜品服务测试
"""

from decimal import Decimal

import pytest

from ..core.exceptions import NotFound, Unauthorized, ValidationError
from ..models.product import ProductCreate, ProductUpdate
from .conftest import run


class TestProductCatalog:
    """菜单查询"""

    def test_customers_only_see_available(self, container, customer, sample_products):
        products = run(container.products.list_products(customer, include_unavailable=True))

        assert [p.id for p in products] == ["prod-b", "prod-a"]

    def test_staff_can_include_unavailable(self, container, staff, sample_products):
        products = run(container.products.list_products(staff, include_unavailable=True))

        assert len(products) == 3

    def test_filter_by_category_and_search(self, container, sample_products):
        assert [p.id for p in run(container.products.list_products(category="Pizza"))] == ["prod-a"]
        assert [p.id for p in run(container.products.list_products(search="herb"))] == ["prod-b"]

    def test_categories(self, container, staff, sample_products):
        assert run(container.products.categories()) == ["Pizza", "Sides"]
        assert run(container.products.categories(staff)) == ["Pizza", "Sides", "Soups"]

    def test_hidden_product_not_visible_to_customers(self, container, customer, staff, sample_products):
        with pytest.raises(NotFound):
            run(container.products.get_visible_product("prod-hidden", customer))
        assert run(container.products.get_visible_product("prod-hidden", staff)).name == "Seasonal Soup"

    def test_get_missing(self, container):
        with pytest.raises(NotFound):
            run(container.products.get_product("missing"))


class TestProductMaintenance:
    """菜品维护"""

    def test_add_product(self, container, staff):
        product = run(container.products.add_product(
            ProductCreate(name="Tiramisu", price=Decimal("6.50"), category="Desserts"), staff
        ))

        stored = run(container.products.get_product(product.id))
        assert stored.price == Decimal("6.50")
        assert stored.available is True

    def test_customer_cannot_add(self, container, customer):
        with pytest.raises(Unauthorized):
            run(container.products.add_product(ProductCreate(name="Tiramisu", price=Decimal("1")), customer))

    def test_update_product(self, container, admin, sample_products):
        updated = run(container.products.update_product(
            "prod-a", ProductUpdate(price=Decimal("13.00")), admin
        ))

        assert updated.price == Decimal("13.00")
        assert updated.name == "Margherita Pizza"
        assert run(container.products.get_product("prod-a")).price == Decimal("13.00")

    def test_negative_price_rejected(self, container, admin, sample_products):
        with pytest.raises(ValidationError):
            run(container.products.update_product(
                "prod-a", ProductUpdate.model_construct(price=Decimal("-1")), admin
            ))

    def test_toggle_availability(self, container, staff, sample_products):
        toggled = run(container.products.toggle_availability("prod-hidden", staff))

        assert toggled.available is True
        assert "prod-hidden" in {p.id for p in run(container.products.list_products())}

    def test_delete_product(self, container, admin, sample_products):
        run(container.products.delete_product("prod-b", admin))

        with pytest.raises(NotFound):
            run(container.products.get_product("prod-b"))
        with pytest.raises(NotFound):
            run(container.products.delete_product("prod-b", admin))

    def test_mutations_logged(self, container, admin, staff, sample_products):
        run(container.products.toggle_availability("prod-a", staff))

        logs = run(container.oplog.list_logs(admin, action="product_update"))
        assert logs[0]["actor_id"] == staff.id
        assert logs[0]["detail"]["product_id"] == "prod-a"
