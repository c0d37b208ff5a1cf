# -*- coding: utf-8 -*-
"""
接口冒烟测试
对已启动的服务依次执行：浏览菜单 -> 下单 -> 员工推进状态 -> 管理员删除订单

用法：
    python scripts/smoke_test.py [base_url]
服务端和本脚本需要使用相同的 JWT_SECRET_KEY
"""

import os
import sys

import requests

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from deliciousbite.core.security import SecurityManager
from deliciousbite.models.user import Actor, UserRole

DEFAULT_BASE_URL = "http://127.0.0.1:8000/api/v1"


class SmokeClient:
    """按角色发送请求的简单客户端"""

    def __init__(self, base_url):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()
        security = SecurityManager()
        self.tokens = {
            role: security.create_jwt_token(Actor(id=f"smoke-{role.value}", role=role))
            for role in UserRole
        }

    def request(self, method, endpoint, role=None, **kwargs):
        headers = kwargs.pop("headers", {})
        if role is not None:
            headers["Authorization"] = f"Bearer {self.tokens[role]}"
        response = self.session.request(method, self.base_url + endpoint,
                                        headers=headers, timeout=10, **kwargs)
        print(f"  {method:<6} {endpoint:<40} -> {response.status_code}")
        return response


def run_smoke_test(base_url):
    client = SmokeClient(base_url)

    menu = client.request("GET", "/products").json()["products"]
    if not menu:
        print("❌ 菜单为空，请先运行 scripts/seed_menu.py")
        return False

    items = [
        {"product_id": p["id"], "name": p["name"], "price": p["price"], "quantity": 1}
        for p in menu[:2]
    ]
    customer = {"name": "Smoke Test", "phone": "555-000-1234", "address": "1 Test Lane"}
    response = client.request("POST", "/orders", UserRole.CUSTOMER,
                              json={"items": items, "customer": customer})
    if response.status_code != 201:
        print(f"❌ 下单失败：{response.text}")
        return False
    order = response.json()
    print(f"  订单 {order['id']} 金额 {order['total_display']}")

    for status in ("preparing", "ready", "delivered"):
        response = client.request("PATCH", f"/orders/{order['id']}/status", UserRole.STAFF,
                                  json={"status": status})
        if response.status_code != 200:
            print(f"❌ 状态修改失败：{response.text}")
            return False

    response = client.request("PATCH", f"/orders/{order['id']}/status", UserRole.STAFF,
                              json={"status": "pending"})
    if response.status_code != 409:
        print("❌ 终态订单不应该允许修改状态")
        return False

    response = client.request("DELETE", f"/orders/{order['id']}", UserRole.ADMIN)
    return response.status_code == 200


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL
    print(f"🧪 冒烟测试：{base_url}")
    ok = run_smoke_test(base_url)
    print("✅ 全部通过" if ok else "❌ 测试失败")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
