from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.cart import MAX_ITEM_QUANTITY


class Settings(BaseSettings):
    # 数据库配置
    database_url: str = "duckdb://./data/deliciousbite.duckdb"

    # JWT配置
    jwt_secret_key: str = "your-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 7  # 7天

    # API配置
    api_title: str = "DeliciousBite API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # 远程存储调用超时（秒）
    remote_timeout_seconds: float = 30.0

    # 购物车配置
    cart_storage_key: str = "cart"
    cart_storage_path: Optional[str] = None  # 为空时购物车只保存在内存中
    max_item_quantity: int = Field(MAX_ITEM_QUANTITY, ge=1, le=MAX_ITEM_QUANTITY)

    # 订单配置
    estimated_delivery_minutes: int = 20
    currency: str = "USD"

    # 开发模式
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


# 全局设置实例
settings = Settings()
