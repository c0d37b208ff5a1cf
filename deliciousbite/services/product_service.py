"""
菜品服务
处理菜单的查询、维护和上下架
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import NotFound, ValidationError
from ..core.storage import StorageClient
from ..models.product import Product, ProductCreate, ProductUpdate
from ..models.user import Actor
from .authorization import can_manage_products, require_product_manager
from .log_service import OperationLogger


def _pydantic_fields(error: PydanticValidationError) -> Dict[str, str]:
    return {".".join(str(p) for p in e["loc"]) or "product": e["msg"] for e in error.errors()}


class ProductCatalog:
    """菜品服务"""

    def __init__(self, storage: StorageClient, operation_logger: Optional[OperationLogger] = None):
        self.storage = storage
        self.oplog = operation_logger or OperationLogger(storage)

    async def list_products(self, actor: Optional[Actor] = None,
                            category: Optional[str] = None,
                            search: Optional[str] = None,
                            include_unavailable: bool = False) -> List[Product]:
        """
        菜单列表

        顾客和未登录用户只能看到上架的菜品；员工/管理员可以通过
        include_unavailable 查看全部菜品
        """
        show_all = include_unavailable and actor is not None and can_manage_products(actor.role)
        filters: Dict[str, Any] = {}
        if not show_all:
            filters["available"] = True
        if category:
            filters["category"] = category

        rows = await self.storage.table("products").select(filters or None, order_by="name")
        products = [Product.from_row(row) for row in rows]

        if search:
            term = search.strip().lower()
            products = [
                p for p in products
                if term in p.name.lower() or term in p.description.lower()
            ]
        return products

    async def categories(self, actor: Optional[Actor] = None) -> List[str]:
        """可见菜品的分类，按字母排序"""
        products = await self.list_products(actor, include_unavailable=True)
        return sorted({p.category for p in products if p.category})

    async def get_product(self, product_id: str) -> Product:
        rows = await self.storage.table("products").select({"id": product_id})
        if not rows:
            raise NotFound("Product", product_id)
        return Product.from_row(rows[0])

    async def get_visible_product(self, product_id: str, actor: Optional[Actor] = None) -> Product:
        """顾客查看下架菜品时按不存在处理"""
        product = await self.get_product(product_id)
        if not product.available and not (actor and can_manage_products(actor.role)):
            raise NotFound("Product", product_id)
        return product

    async def add_product(self, data: ProductCreate, actor: Optional[Actor]) -> Product:
        """新增菜品"""
        require_product_manager(actor)
        product = Product(id=str(uuid.uuid4()), **data.model_dump())
        await self.storage.table("products").insert([product.to_row()])
        await self.oplog.log("product_create", actor.id, detail={
            "product_id": product.id,
            "name": product.name,
            "price": str(product.price),
        })
        return product

    async def update_product(self, product_id: str, changes: ProductUpdate,
                             actor: Optional[Actor]) -> Product:
        """修改菜品，只更新传入的字段"""
        require_product_manager(actor)
        current = await self.get_product(product_id)
        values = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            return current
        try:
            updated = Product.model_validate({**current.model_dump(), **values})
        except PydanticValidationError as e:
            raise ValidationError("Invalid product data", fields=_pydantic_fields(e))

        await self.storage.table("products").update({"id": product_id}, values)
        await self.oplog.log("product_update", actor.id, detail={
            "product_id": product_id,
            "changes": {k: str(v) for k, v in values.items()},
        })
        return updated

    async def toggle_availability(self, product_id: str, actor: Optional[Actor]) -> Product:
        """快速上下架"""
        require_product_manager(actor)
        current = await self.get_product(product_id)
        return await self.update_product(
            product_id, ProductUpdate(available=not current.available), actor
        )

    async def delete_product(self, product_id: str, actor: Optional[Actor]) -> None:
        """删除菜品，已下单的订单保存有菜品快照，不受影响"""
        require_product_manager(actor)
        deleted = await self.storage.table("products").delete({"id": product_id})
        if not deleted:
            raise NotFound("Product", product_id)
        await self.oplog.log("product_delete", actor.id, detail={"product_id": product_id})
