"""
用户/操作者相关数据模型
用户由外部认证服务提供，本模块只描述核心需要的字段
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """用户角色枚举"""
    CUSTOMER = "customer"   # 顾客
    STAFF = "staff"         # 员工
    ADMIN = "admin"         # 管理员


class Actor(BaseModel):
    """执行操作的用户"""
    id: str = Field(..., min_length=1, description="用户ID")
    role: UserRole = Field(UserRole.CUSTOMER, description="用户角色")
    name: Optional[str] = Field(None, description="用户名称")

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        """员工或管理员"""
        return self.role in (UserRole.STAFF, UserRole.ADMIN)
