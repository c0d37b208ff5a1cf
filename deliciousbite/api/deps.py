"""
接口层依赖注入
从 app.state 取出服务容器，并把 bearer token 解析为当前操作者
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.exceptions import AuthenticationError
from ..core.security import TokenAuthProvider
from ..models.user import Actor
from ..services.container import ServiceContainer

# 未携带token时不自动报错，由具体接口决定是否必须登录
security = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """获取应用生命周期内的服务容器"""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container is not initialized")
    return container


def get_auth_provider(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    container: ServiceContainer = Depends(get_container),
) -> TokenAuthProvider:
    token = credentials.credentials if credentials else None
    return TokenAuthProvider(container.security, token)


async def get_optional_actor(
    auth: TokenAuthProvider = Depends(get_auth_provider),
) -> Optional[Actor]:
    """可选登录：未携带token时返回None，token无效时返回401"""
    try:
        return await auth.current_user()
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)


async def get_current_actor(
    actor: Optional[Actor] = Depends(get_optional_actor),
) -> Actor:
    """必须登录"""
    if actor is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return actor
