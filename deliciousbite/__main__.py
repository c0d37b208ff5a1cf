"""
本地启动入口：python -m deliciousbite

APP_ENV=development（默认）时使用开发配置，其他值使用 .env / 环境变量中的配置
"""

import os

import uvicorn

from .app import create_app
from .config.environments import DevelopmentSettings
from .config.settings import settings

if __name__ == "__main__":
    config = DevelopmentSettings() if os.getenv("APP_ENV", "development") == "development" else settings
    print(f"🚀 启动 {config.api_title} ...")
    print(f"📋 数据库：{config.database_url}")
    print("🔍 服务器地址：http://127.0.0.1:8000")
    uvicorn.run(create_app(config), host="127.0.0.1", port=8000)
