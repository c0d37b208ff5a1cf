"""
基础数据模型
定义通用的模型基类和常用字段
"""

from pydantic import BaseModel
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


def utc_now() -> datetime:
    """当前UTC时间（带时区）"""
    return datetime.now(timezone.utc)


def quantize_money(amount: Decimal) -> Decimal:
    """金额统一保留两位小数"""
    return Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class TimestampMixin(BaseModel):
    """时间戳混入类"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BaseEntity(BaseModel):
    """基础实体模型"""

    model_config = {"from_attributes": True, "use_enum_values": False}
