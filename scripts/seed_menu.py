# -*- coding: utf-8 -*-
"""
开发数据初始化脚本
向配置的数据库写入示例菜单，并输出各角色的开发用token

用法：
    python scripts/seed_menu.py [menu.json]
"""

import asyncio
import codecs
import json
import os
import sys
from decimal import Decimal

# 项目根目录
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from deliciousbite.models.product import ProductCreate
from deliciousbite.models.user import Actor, UserRole
from deliciousbite.services.container import ServiceContainer

DEFAULT_MENU = [
    {"name": "Margherita Pizza", "description": "Tomato, mozzarella and basil",
     "price": "12.50", "category": "Pizza"},
    {"name": "Pepperoni Pizza", "description": "Spicy pepperoni and mozzarella",
     "price": "14.00", "category": "Pizza"},
    {"name": "Caesar Salad", "description": "Romaine, parmesan and croutons",
     "price": "8.75", "category": "Salads"},
    {"name": "Garlic Bread", "description": "Toasted with herb butter",
     "price": "4.00", "category": "Sides"},
    {"name": "Tiramisu", "description": "Coffee-soaked ladyfingers",
     "price": "6.50", "category": "Desserts"},
]

DEV_ACTORS = [
    Actor(id="dev-customer", role=UserRole.CUSTOMER, name="Dev Customer"),
    Actor(id="dev-staff", role=UserRole.STAFF, name="Dev Staff"),
    Actor(id="dev-admin", role=UserRole.ADMIN, name="Dev Admin"),
]


def load_menu(path=None):
    """加载菜单文件，未指定时使用内置示例菜单"""
    if not path:
        return DEFAULT_MENU
    with codecs.open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


async def seed(menu):
    container = ServiceContainer()
    container.startup()
    admin = DEV_ACTORS[2]
    try:
        existing = {p.name for p in await container.products.list_products(admin, include_unavailable=True)}
        for entry in menu:
            if entry["name"] in existing:
                print(f"  ⏭  {entry['name']} 已存在")
                continue
            data = ProductCreate(**{**entry, "price": Decimal(str(entry["price"]))})
            product = await container.products.add_product(data, admin)
            print(f"  ✅ {product.name} ({product.id})")

        print("\n开发用token：")
        for actor in DEV_ACTORS:
            print(f"  {actor.role.value:<8} {container.security.create_jwt_token(actor)}")
    finally:
        container.shutdown()


def main():
    menu = load_menu(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"🍽  写入 {len(menu)} 个菜品...")
    asyncio.run(seed(menu))


if __name__ == "__main__":
    main()
