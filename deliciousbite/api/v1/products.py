"""
菜品管理路由模块
菜单浏览对所有人开放，菜品维护需要员工或管理员权限
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...models.product import ProductCreate, ProductUpdate
from ...models.user import Actor
from ...schemas.product import CategoryListResponse, ProductListResponse, ProductResponse
from ...services.container import ServiceContainer
from ..deps import get_container, get_current_actor, get_optional_actor

router = APIRouter()


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    include_unavailable: bool = False,
    actor: Optional[Actor] = Depends(get_optional_actor),
    container: ServiceContainer = Depends(get_container),
):
    """菜单列表，支持分类和关键字过滤"""
    products = await container.products.list_products(
        actor, category=category, search=search, include_unavailable=include_unavailable
    )
    return ProductListResponse(
        products=[ProductResponse.from_product(p) for p in products],
        total_count=len(products),
    )


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    actor: Optional[Actor] = Depends(get_optional_actor),
    container: ServiceContainer = Depends(get_container),
):
    return CategoryListResponse(categories=await container.products.categories(actor))


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    actor: Optional[Actor] = Depends(get_optional_actor),
    container: ServiceContainer = Depends(get_container),
):
    product = await container.products.get_visible_product(product_id, actor)
    return ProductResponse.from_product(product)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    req: ProductCreate,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """新增菜品（员工/管理员）"""
    product = await container.products.add_product(req, actor)
    return ProductResponse.from_product(product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    req: ProductUpdate,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """修改菜品（员工/管理员）"""
    product = await container.products.update_product(product_id, req, actor)
    return ProductResponse.from_product(product)


@router.post("/{product_id}/toggle", response_model=ProductResponse)
async def toggle_product(
    product_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """上架/下架切换"""
    product = await container.products.toggle_availability(product_id, actor)
    return ProductResponse.from_product(product)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container),
):
    """删除菜品（员工/管理员）"""
    await container.products.delete_product(product_id, actor)
    return create_success_response({"product_id": product_id}, "Product deleted")
