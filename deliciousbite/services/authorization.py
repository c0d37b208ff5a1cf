"""
权限与状态流转规则
所有角色判断都集中在这里，服务层和接口层统一调用

状态流转：
- pending -> preparing -> ready -> delivered
- pending / preparing / ready -> cancelled
- delivered、cancelled 为终态
"""

from typing import Dict, FrozenSet, List, Optional

from ..core.exceptions import InvalidTransition, Unauthorized
from ..models.order import Order, OrderStatus
from ..models.user import Actor, UserRole

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# 可以修改订单状态的角色
STATUS_MANAGER_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN})
# 可以维护菜品的角色
PRODUCT_MANAGER_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN})


def is_valid_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """状态机是否允许 current -> target"""
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def next_statuses(current: OrderStatus) -> List[OrderStatus]:
    """当前状态可以流转到的状态，按流程顺序排列"""
    allowed = ALLOWED_TRANSITIONS[OrderStatus(current)]
    return [status for status in OrderStatus if status in allowed]


def can_transition(role: Optional[UserRole], current: OrderStatus, target: OrderStatus) -> bool:
    """角色是否可以把订单从 current 改为 target"""
    return role in STATUS_MANAGER_ROLES and is_valid_transition(current, target)


def can_view(role: Optional[UserRole], order: Order, actor_id: Optional[str]) -> bool:
    """员工和管理员可以查看所有订单，顾客只能查看自己的订单"""
    if role in STATUS_MANAGER_ROLES:
        return True
    return role == UserRole.CUSTOMER and actor_id is not None and order.user_id == actor_id


def can_manage_products(role: Optional[UserRole]) -> bool:
    return role in PRODUCT_MANAGER_ROLES


def can_delete_orders(role: Optional[UserRole]) -> bool:
    return role == UserRole.ADMIN


def require_status_manager(actor: Optional[Actor]) -> Actor:
    if actor is None or actor.role not in STATUS_MANAGER_ROLES:
        raise Unauthorized(
            "Only staff or admin can change order status",
            details={"role": actor.role.value if actor else None},
        )
    return actor


def require_transition(current: OrderStatus, target: OrderStatus) -> None:
    if not is_valid_transition(current, target):
        raise InvalidTransition(OrderStatus(current).value, OrderStatus(target).value)


def require_product_manager(actor: Optional[Actor]) -> Actor:
    if actor is None or not can_manage_products(actor.role):
        raise Unauthorized(
            "Only staff or admin can manage products",
            details={"role": actor.role.value if actor else None},
        )
    return actor


def require_order_admin(actor: Optional[Actor]) -> Actor:
    if actor is None or not can_delete_orders(actor.role):
        raise Unauthorized(
            "Only admin can delete orders",
            details={"role": actor.role.value if actor else None},
        )
    return actor


def require_admin(actor: Optional[Actor]) -> Actor:
    if actor is None or actor.role != UserRole.ADMIN:
        raise Unauthorized(
            "Admin permission required",
            details={"role": actor.role.value if actor else None},
        )
    return actor
