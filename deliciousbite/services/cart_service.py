"""
购物车服务
维护当前会话的已选菜品、数量和备注，并持久化到键值存储槽

业务规则：
- 同一菜品在购物车中只有一条记录，重复加入时累加数量
- 数量始终在 1..max_quantity 之间（不超过 MAX_ITEM_QUANTITY），超出范围的输入会被截断
- 修改数量为小于1的值时不做任何修改，删除菜品必须显式调用 remove
- 总价每次读取时重新计算
- 加载持久化数据失败（缺失、损坏、格式不符）时回退为空购物车
"""

import json
import os
from abc import ABC, abstractmethod
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config.settings import settings
from ..models.cart import (
    AddItem,
    CartCommand,
    CartItem,
    ClearCart,
    MAX_ITEM_QUANTITY,
    RemoveItem,
    UpdateInstructions,
    UpdateQuantity,
    cart_items_adapter,
)
from ..models.product import Product


class KeyValueStore(ABC):
    """购物车持久化槽"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryKeyValueStore(KeyValueStore):
    """进程内存储，进程退出即丢失"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """单个JSON文件保存所有键值，文件损坏时视为空"""

    def __init__(self, path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key):
        return self._load().get(key)

    def set(self, key, value):
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key):
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


def clamp_quantity(quantity: int, max_quantity: int) -> int:
    """把数量截断到 1..max_quantity"""
    return max(1, min(int(quantity), max_quantity))


def reduce_cart(items: List[CartItem], command: CartCommand,
                max_quantity: Optional[int] = None) -> List[CartItem]:
    """
    纯函数：根据命令计算新的购物车内容，不修改传入的列表

    Raises:
        TypeError: 未知的命令类型
    """
    max_quantity = min(max_quantity or settings.max_item_quantity, MAX_ITEM_QUANTITY)

    if isinstance(command, AddItem):
        incoming = command.item
        for index, item in enumerate(items):
            if item.product_id == incoming.product_id:
                merged = item.model_copy(update={
                    "quantity": clamp_quantity(item.quantity + incoming.quantity, max_quantity)
                })
                return items[:index] + [merged] + items[index + 1:]
        added = incoming.model_copy(update={
            "quantity": clamp_quantity(incoming.quantity, max_quantity)
        })
        return items + [added]

    if isinstance(command, RemoveItem):
        return [item for item in items if item.product_id != command.product_id]

    if isinstance(command, UpdateQuantity):
        if command.quantity < 1:
            return list(items)
        quantity = clamp_quantity(command.quantity, max_quantity)
        return [
            item.model_copy(update={"quantity": quantity})
            if item.product_id == command.product_id else item
            for item in items
        ]

    if isinstance(command, UpdateInstructions):
        return [
            item.model_copy(update={"special_instructions": command.instructions})
            if item.product_id == command.product_id else item
            for item in items
        ]

    if isinstance(command, ClearCart):
        return []

    raise TypeError(f"unknown cart command: {type(command).__name__}")


def serialize_cart(items: List[CartItem]) -> str:
    return cart_items_adapter.dump_json(items, exclude_none=True).decode("utf-8")


def deserialize_cart(raw: Optional[str], max_quantity: Optional[int] = None) -> List[CartItem]:
    """反序列化购物车，数据缺失或损坏时返回空列表，同一菜品的重复记录会被合并"""
    if not raw:
        return []
    try:
        loaded = cart_items_adapter.validate_json(raw)
    except (PydanticValidationError, ValueError):
        return []
    items: List[CartItem] = []
    for item in loaded:
        items = reduce_cart(items, AddItem(item=item), max_quantity)
    return items


class CartStore:
    """购物车状态容器"""

    def __init__(self, storage: Optional[KeyValueStore] = None,
                 storage_key: Optional[str] = None,
                 max_quantity: Optional[int] = None):
        self.storage = storage or MemoryKeyValueStore()
        self.storage_key = storage_key or settings.cart_storage_key
        self.max_quantity = min(max_quantity or settings.max_item_quantity, MAX_ITEM_QUANTITY)
        self._items: List[CartItem] = self._load()

    def _load(self) -> List[CartItem]:
        try:
            raw = self.storage.get(self.storage_key)
        except OSError:
            return []
        return deserialize_cart(raw, self.max_quantity)

    def _persist(self, items: List[CartItem]) -> None:
        self.storage.set(self.storage_key, serialize_cart(items))

    def dispatch(self, command: CartCommand) -> List[CartItem]:
        """应用命令并持久化，返回新的购物车快照；持久化失败时内存中的内容不变"""
        items = reduce_cart(self._items, command, self.max_quantity)
        self._persist(items)
        self._items = items
        return self.snapshot()

    def add(self, product: Product, quantity: int = 1,
            special_instructions: Optional[str] = None) -> List[CartItem]:
        item = CartItem.from_product(
            product, clamp_quantity(quantity, self.max_quantity), special_instructions
        )
        return self.dispatch(AddItem(item=item))

    def remove(self, product_id: str) -> List[CartItem]:
        return self.dispatch(RemoveItem(product_id=product_id))

    def update_quantity(self, product_id: str, quantity: int) -> List[CartItem]:
        return self.dispatch(UpdateQuantity(product_id=product_id, quantity=quantity))

    def update_instructions(self, product_id: str, text: str) -> List[CartItem]:
        return self.dispatch(UpdateInstructions(product_id=product_id, instructions=text))

    def clear(self) -> List[CartItem]:
        return self.dispatch(ClearCart())

    def snapshot(self) -> List[CartItem]:
        """当前内容的深拷贝"""
        return [item.model_copy(deep=True) for item in self._items]

    @property
    def items(self) -> List[CartItem]:
        return self.snapshot()

    def get(self, product_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.product_id == product_id:
                return item.model_copy(deep=True)
        return None

    def total(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    def item_count(self) -> int:
        """购物车角标显示的总件数"""
        return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def serialize(self) -> str:
        return serialize_cart(self._items)

    def __len__(self) -> int:
        return len(self._items)
