"""
安全相关功能
JWT 令牌签发/校验，以及把令牌解析为当前操作者（Actor）的认证协作方

令牌载荷：
- sub: 用户ID
- role: customer / staff / admin
- name: 用户名称（可选）
"""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from pydantic import ValidationError as PydanticValidationError

from .exceptions import AuthenticationError
from ..config.settings import Settings, settings as default_settings
from ..models.user import Actor


class SecurityManager:
    """安全管理器"""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def create_jwt_token(self, actor: Actor, additional_claims: Dict[str, Any] = None) -> str:
        """创建JWT token"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": actor.id,
            "role": actor.role.value,
            "exp": now + timedelta(hours=self.config.jwt_expire_hours),
            "iat": now,
        }
        if actor.name:
            payload["name"] = actor.name
        if additional_claims:
            payload.update(additional_claims)
        try:
            return jwt.encode(payload, self.config.jwt_secret_key, algorithm=self.config.jwt_algorithm)
        except Exception as e:
            raise AuthenticationError(f"Failed to create token: {e}")

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        """解码JWT token"""
        try:
            return jwt.decode(token, self.config.jwt_secret_key, algorithms=[self.config.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    def decode_actor(self, token: str) -> Actor:
        """从token中还原操作者"""
        payload = self.decode_jwt_token(token)
        if not payload.get("sub"):
            raise AuthenticationError("Token missing subject")
        try:
            return Actor(id=str(payload["sub"]), role=payload.get("role", "customer"), name=payload.get("name"))
        except PydanticValidationError:
            raise AuthenticationError("Token carries an unknown role")


class TokenAuthProvider:
    """基于 bearer token 的认证协作方：current_user() -> Actor | None"""

    def __init__(self, security_manager: SecurityManager, token: Optional[str]):
        self.security_manager = security_manager
        self.token = token

    async def current_user(self) -> Optional[Actor]:
        if not self.token:
            return None
        return self.security_manager.decode_actor(self.token)

