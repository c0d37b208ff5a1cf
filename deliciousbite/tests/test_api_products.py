"""
菜品API集成测试
"""

import json

from fastapi.testclient import TestClient

from ..core.exceptions import RemoteFailure


class TestProductsAPI:
    """菜品API测试"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_list_products_anonymous(self, client, sample_products):
        response = client.get("/api/v1/products")

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 2
        assert data["products"][1]["price_display"] == "$12.50"

    def test_categories(self, client, sample_products):
        response = client.get("/api/v1/products/categories")
        assert response.json()["categories"] == ["Pizza", "Sides"]

    def test_hidden_product(self, client, staff_headers, sample_products):
        assert client.get("/api/v1/products/prod-hidden").status_code == 404
        assert client.get("/api/v1/products/prod-hidden", headers=staff_headers).status_code == 200

    def test_create_update_toggle_delete(self, client, staff_headers, auth_headers):
        payload = {"name": "Tiramisu", "price": "6.50", "category": "Desserts"}

        response = client.post("/api/v1/products", headers=auth_headers, json=payload)
        assert response.status_code == 403

        response = client.post("/api/v1/products", headers=staff_headers, json=payload)
        assert response.status_code == 201
        product_id = response.json()["id"]

        response = client.patch(f"/api/v1/products/{product_id}", headers=staff_headers,
                                json={"price": "7.00"})
        assert response.json()["price_display"] == "$7.00"

        response = client.post(f"/api/v1/products/{product_id}/toggle", headers=staff_headers)
        assert response.json()["available"] is False

        response = client.delete(f"/api/v1/products/{product_id}", headers=staff_headers)
        assert response.status_code == 200
        assert client.delete(f"/api/v1/products/{product_id}", headers=staff_headers).status_code == 404

    def test_negative_price_rejected(self, client, staff_headers):
        response = client.post("/api/v1/products", headers=staff_headers,
                               json={"name": "Free Lunch", "price": "-1"})

        assert response.status_code == 400
        assert "price" in response.json()["details"]["fields"]


class TestErrorHandling:
    """错误处理"""

    def test_remote_failure_maps_to_502(self, client, container, monkeypatch):
        async def broken(*args, **kwargs):
            raise RemoteFailure("select products timed out after 5.0s", details={"timeout": 5.0})

        monkeypatch.setattr(container.products, "list_products", broken)
        response = client.get("/api/v1/products")

        assert response.status_code == 502
        assert response.json()["error_code"] == "REMOTE_FAILURE"

    def test_unknown_error_logged(self, app_instance, container, test_db, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(container.products, "list_products", broken)
        with TestClient(app_instance, raise_server_exceptions=False) as client:
            response = client.get("/api/v1/products")
            rows = test_db.fetch_all("SELECT * FROM logs WHERE action = 'system_error'")

        assert response.status_code == 500
        assert response.json()["error_code"] == "INTERNAL_ERROR"
        assert json.loads(rows[0]["detail_json"])["message"] == "boom"
