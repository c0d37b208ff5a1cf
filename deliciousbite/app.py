"""
DeliciousBite 餐厅点餐后端服务 - 主应用入口
提供菜单浏览、下单和订单管理的完整后端API服务

主要功能模块：
- 菜单浏览和菜品维护
- 购物车快照下单
- 订单状态流转和跟踪
- 操作日志记录

技术栈：FastAPI + DuckDB + JWT认证
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager

from .core.exceptions import BaseApplicationError
from .core.error_handler import (
    application_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from .config.settings import Settings, settings as default_settings
from .services.container import ServiceContainer
from .api import api_router
from .schemas.common import ERROR_RESPONSES


def create_app(config: Optional[Settings] = None,
               container: Optional[ServiceContainer] = None) -> FastAPI:
    """创建FastAPI应用，测试时可以传入自己的配置或服务容器"""
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        services = container or ServiceContainer(config)
        services.startup()
        app.state.container = services
        print(f"{config.api_title} started, database: {services.db.db_path}")

        yield

        services.shutdown()
        app.state.container = None

    app = FastAPI(
        title=config.api_title,
        version=config.api_version,
        description="DeliciousBite restaurant ordering API",
        debug=config.debug,
        lifespan=lifespan
    )

    # 添加中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册异常处理器
    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # 注册路由
    app.include_router(api_router, prefix=config.api_prefix, responses=ERROR_RESPONSES)

    # 健康检查
    @app.get("/health")
    async def health_check():
        services = getattr(app.state, "container", None)
        try:
            if services is None:
                raise RuntimeError("service container not started")
            await services.storage.table("products").select({"id": ""})
            return {
                "status": "healthy",
                "version": config.api_version,
                "database": "connected"
            }
        except (BaseApplicationError, RuntimeError) as e:
            return {
                "status": "unhealthy",
                "version": config.api_version,
                "database": f"error: {e}"
            }

    @app.get("/")
    async def root():
        return {
            "name": config.api_title,
            "version": config.api_version,
            "description": "DeliciousBite restaurant ordering API"
        }

    return app

# 应用实例
app = create_app()
