"""
订单服务模块
提供订单相关的核心业务逻辑：下单、状态流转、查询和删除

主要功能：
- 根据购物车快照创建订单（服务端重新计算金额）
- 按状态机和角色规则修改订单状态
- 按角色过滤可见订单，支持状态过滤和按时间排序
- 管理员删除订单（先删明细，再删订单）
- 本地缓存订单，失败时缓存保持不变

业务规则：
- 购物车为空、联系方式不合法时不产生任何写操作
- 订单头和明细在同一事务中写入；存储不支持事务时，
  明细写入失败会补偿删除订单头
- 只有员工和管理员可以修改状态，只有管理员可以删除订单
"""

import uuid
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import (
    NotFound,
    RemoteFailure,
    Unauthorized,
    ValidationError,
)
from ..core.storage import StorageClient, WriteOperation
from ..models.base import quantize_money, utc_now
from ..models.cart import CartItem, MAX_ITEM_QUANTITY
from ..models.order import CustomerDetails, Order, OrderStatus, SortOrder
from ..models.user import Actor
from ..utils.formatters import digits_only, estimated_delivery_time
from .authorization import (
    can_view,
    require_order_admin,
    require_status_manager,
    require_transition,
)
from .cart_service import CartStore
from .log_service import OperationLogger

# 订单跟踪进度
STATUS_PROGRESS: Dict[OrderStatus, float] = {
    OrderStatus.PENDING: 0.25,
    OrderStatus.PREPARING: 0.5,
    OrderStatus.READY: 0.75,
    OrderStatus.DELIVERED: 1.0,
    OrderStatus.CANCELLED: 0.0,
}


def progress(status: OrderStatus) -> float:
    """订单跟踪页面的进度条比例"""
    return STATUS_PROGRESS[OrderStatus(status)]


def compute_total(items: Sequence[CartItem]) -> Decimal:
    """订单金额 = sum(单价 * 数量)"""
    return quantize_money(sum((item.price * item.quantity for item in items), Decimal("0")))


def validate_customer_details(details: CustomerDetails) -> CustomerDetails:
    """
    校验联系方式

    Returns:
        CustomerDetails: 去除首尾空白后的联系方式

    Raises:
        ValidationError: details["fields"] 列出所有出错的字段
    """
    errors: Dict[str, str] = {}
    name = (details.name or "").strip()
    phone = (details.phone or "").strip()
    address = (details.address or "").strip()

    if not name:
        errors["name"] = "Name is required"
    if not phone:
        errors["phone"] = "Phone number is required"
    elif len(digits_only(phone)) != 10:
        errors["phone"] = "Please enter a valid 10-digit phone number"
    if not address:
        errors["address"] = "Delivery address is required"

    if errors:
        raise ValidationError("Invalid customer details", fields=errors)
    return CustomerDetails(name=name, phone=phone, address=address)


def validate_cart_snapshot(items: Sequence[CartItem]) -> List[CartItem]:
    """校验购物车快照并返回深拷贝，订单不引用购物车中的对象"""
    if not items:
        raise ValidationError("Cannot place an order from an empty cart",
                              fields={"items": "Cart is empty"})
    errors: Dict[str, str] = {}
    seen = set()
    for index, item in enumerate(items):
        if not 1 <= item.quantity <= MAX_ITEM_QUANTITY:
            errors[f"items[{index}].quantity"] = f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}"
        if item.price < 0:
            errors[f"items[{index}].price"] = "Price cannot be negative"
        if item.product_id in seen:
            errors[f"items[{index}].product_id"] = "Duplicate product in cart"
        seen.add(item.product_id)
    if errors:
        raise ValidationError("Invalid cart items", fields=errors)
    return [item.model_copy(deep=True) for item in items]


class OrderLifecycle:
    """订单生命周期服务"""

    def __init__(self, storage: StorageClient,
                 cart: Optional[CartStore] = None,
                 operation_logger: Optional[OperationLogger] = None):
        self.storage = storage
        self.cart = cart
        self.oplog = operation_logger or OperationLogger(storage)
        self._cache: Dict[str, Order] = {}

    @property
    def cached_orders(self) -> List[Order]:
        """本地缓存的订单（副本）"""
        return [order.model_copy(deep=True) for order in self._cache.values()]

    async def checkout(self, customer_details: CustomerDetails, actor: Optional[Actor]) -> Order:
        """用绑定的购物车下单"""
        if self.cart is None:
            raise ValidationError("No cart is bound to this order service")
        return await self.place_order(self.cart.snapshot(), customer_details, actor)

    async def place_order(self, cart_snapshot: Sequence[CartItem],
                          customer_details: CustomerDetails,
                          actor: Optional[Actor]) -> Order:
        """
        创建订单

        Args:
            cart_snapshot: 下单时的购物车内容
            customer_details: 联系方式
            actor: 当前登录用户

        Returns:
            Order: 新建的订单，状态为 pending

        Raises:
            Unauthorized: 未登录时
            ValidationError: 购物车为空或联系方式不合法时
            RemoteFailure: 存储写入失败时
        """
        if actor is None or not actor.id:
            raise Unauthorized("Please log in to place an order")

        items = validate_cart_snapshot(cart_snapshot)
        contact = validate_customer_details(customer_details)

        now = utc_now()
        order = Order(
            id=str(uuid.uuid4()),
            items=items,
            status=OrderStatus.PENDING,
            customer_name=contact.name,
            customer_phone=contact.phone,
            customer_address=contact.address,
            total_amount=compute_total(items),
            user_id=actor.id,
            created_at=now,
            updated_at=now,
            estimated_delivery_time=estimated_delivery_time(now),
        )

        await self._write_new_order(order)

        self._cache[order.id] = order
        if self.cart is not None:
            self.cart.clear()

        await self.oplog.log("order_create", actor.id, order.user_id, {
            "order_id": order.id,
            "items": [
                {"product_id": i.product_id, "quantity": i.quantity, "price": str(i.price)}
                for i in order.items
            ],
            "total_amount": str(order.total_amount),
        })
        return order.model_copy(deep=True)

    async def _write_new_order(self, order: Order) -> None:
        """写入订单头和明细"""
        header = order.header_row()
        item_rows = order.item_rows()

        if self.storage.supports_transactions:
            await self.storage.atomic([
                WriteOperation.insert("orders", [header]),
                WriteOperation.insert("order_items", item_rows),
            ])
            return

        await self.storage.table("orders").insert([header])
        try:
            await self.storage.table("order_items").insert(item_rows)
        except RemoteFailure as item_error:
            # 明细写入失败，补偿删除订单头
            try:
                await self.storage.table("orders").delete({"id": order.id})
            except RemoteFailure as cleanup_error:
                raise RemoteFailure(
                    "Order items could not be saved and the order header could not be removed",
                    details={
                        "inconsistent_order_id": order.id,
                        "reason": item_error.message,
                        "cleanup_reason": cleanup_error.message,
                    },
                )
            raise RemoteFailure(
                "Order items could not be saved; the order was not placed",
                details={"order_id": order.id, "reason": item_error.message},
            )

    async def update_status(self, order_id: str, target_status, actor: Optional[Actor]) -> Order:
        """
        修改订单状态

        Raises:
            Unauthorized: 非员工/管理员
            ValidationError: 目标状态未知
            NotFound: 订单不存在
            InvalidTransition: 状态机不允许该流转
            RemoteFailure: 存储写入失败
        """
        require_status_manager(actor)
        try:
            target = OrderStatus(target_status)
        except ValueError:
            raise ValidationError(
                f"Unknown order status: {target_status}",
                fields={"status": "Unknown order status"},
            )

        order = await self._load_order(order_id)
        previous = order.status
        require_transition(previous, target)

        updated_at = utc_now()
        await self.storage.table("orders").update(
            {"id": order_id},
            {"status": target.value, "updated_at": updated_at.isoformat()},
        )

        updated = order.model_copy(update={"status": target, "updated_at": updated_at})
        self._cache[order_id] = updated

        await self.oplog.log("order_status_change", actor.id, order.user_id, {
            "order_id": order_id,
            "from": previous.value,
            "to": target.value,
        })
        return updated.model_copy(deep=True)

    async def list_orders(self, actor: Optional[Actor],
                          status: Optional[OrderStatus] = None,
                          sort: Optional[SortOrder] = None) -> List[Order]:
        """
        查询订单列表

        顾客只返回自己的订单，员工和管理员返回全部订单。
        sort 为 newest/oldest 时按下单时间稳定排序。
        """
        if actor is None:
            raise Unauthorized("Please log in to view orders")

        filters = None
        if not actor.is_staff:
            filters = {"user_id": actor.id}
        orders = await self._fetch_orders(filters)

        # 管理员视图下刷新整个缓存，顾客视图只刷新自己的订单
        if filters is None:
            self._cache = {order.id: order for order in orders}
        else:
            for order in orders:
                self._cache[order.id] = order

        visible = [o for o in orders if can_view(actor.role, o, actor.id)]
        if status is not None:
            status = OrderStatus(status)
            visible = [o for o in visible if o.status == status]
        if sort is not None:
            visible.sort(key=lambda o: o.created_at, reverse=SortOrder(sort) == SortOrder.NEWEST)
        return [o.model_copy(deep=True) for o in visible]

    async def get_order(self, order_id: str, actor: Optional[Actor]) -> Order:
        """查询单个订单，顾客查看他人订单时按不存在处理"""
        if actor is None:
            raise Unauthorized("Please log in to view orders")
        order = await self._load_order(order_id)
        if not can_view(actor.role, order, actor.id):
            raise NotFound("Order", order_id)
        return order.model_copy(deep=True)

    async def track_order(self, query: str, actor: Optional[Actor]) -> Order:
        """按订单号（不区分大小写的子串）查找可见订单"""
        query = (query or "").strip().lower()
        if not query:
            raise ValidationError("Please enter an order ID", fields={"order_id": "Order ID is required"})
        for order in await self.list_orders(actor, sort=SortOrder.NEWEST):
            if query in order.id.lower():
                return order
        raise NotFound("Order", query)

    async def status_counts(self, actor: Optional[Actor]) -> Dict[str, int]:
        """可见订单按状态计数"""
        counts = {status.value: 0 for status in OrderStatus}
        for order in await self.list_orders(actor):
            counts[order.status.value] += 1
        return counts

    async def delete_order(self, order_id: str, actor: Optional[Actor]) -> Order:
        """
        删除订单（管理员）

        先删除明细再删除订单头，存储支持事务时在同一事务中执行
        """
        require_order_admin(actor)
        order = await self._load_order(order_id)

        if self.storage.supports_transactions:
            await self.storage.atomic([
                WriteOperation.delete("order_items", {"order_id": order_id}),
                WriteOperation.delete("orders", {"id": order_id}),
            ])
        else:
            await self._delete_without_transaction(order)

        self._cache.pop(order_id, None)
        await self.oplog.log("order_delete", actor.id, order.user_id, {
            "order_id": order_id,
            "status": order.status.value,
            "total_amount": str(order.total_amount),
        })
        return order

    async def _delete_without_transaction(self, order: Order) -> None:
        """逐表删除；订单头删除失败时恢复已删除的明细"""
        await self.storage.table("order_items").delete({"order_id": order.id})
        try:
            await self.storage.table("orders").delete({"id": order.id})
        except RemoteFailure as header_error:
            try:
                await self.storage.table("order_items").insert(order.item_rows())
            except RemoteFailure as restore_error:
                raise RemoteFailure(
                    "Order could not be deleted and its items could not be restored",
                    details={
                        "inconsistent_order_id": order.id,
                        "reason": header_error.message,
                        "cleanup_reason": restore_error.message,
                    },
                )
            raise RemoteFailure(
                "Order could not be deleted",
                details={"order_id": order.id, "reason": header_error.message},
            )

    async def _load_order(self, order_id: str) -> Order:
        """从存储加载最新的订单并刷新缓存"""
        orders = await self._fetch_orders({"id": order_id})
        if not orders:
            self._cache.pop(order_id, None)
            raise NotFound("Order", order_id)
        self._cache[order_id] = orders[0]
        return orders[0]

    async def _fetch_orders(self, filters: Optional[dict]) -> List[Order]:
        """读取订单头和明细并组装为 Order"""
        headers = await self.storage.table("orders").select(filters, order_by="created_at")
        if not headers:
            return []
        if filters is None:
            item_rows = await self.storage.table("order_items").select()
        else:
            # 只读取命中订单的明细
            item_rows = []
            for header in headers:
                item_rows.extend(
                    await self.storage.table("order_items").select({"order_id": header["id"]})
                )

        items_by_order: Dict[str, List[dict]] = {}
        for row in item_rows:
            items_by_order.setdefault(row["order_id"], []).append(row)

        orders = []
        for header in headers:
            try:
                orders.append(Order.from_rows(header, items_by_order.get(header["id"], [])))
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Stored order {header.get('id')} is invalid",
                    details={"order_id": header.get("id"), "errors": str(e)},
                )
        return orders
