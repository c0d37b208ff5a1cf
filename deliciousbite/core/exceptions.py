"""
自定义异常类
提供更精确的错误处理和异常信息

所有业务异常都携带 error_code 和 details，表现层据此渲染用户可读的错误信息。
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """应用基础异常类"""

    default_error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BaseApplicationError):
    """数据验证异常

    details["fields"] 记录每个出错字段对应的错误信息
    """
    default_error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        fields: Optional[Dict[str, str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if fields:
            details["fields"] = dict(fields)
        super().__init__(message, details=details)

    @property
    def fields(self) -> Dict[str, str]:
        return self.details.get("fields", {})


class AuthenticationError(BaseApplicationError):
    """认证相关异常"""
    default_error_code = "AUTHENTICATION_REQUIRED"


class Unauthorized(BaseApplicationError):
    """角色权限不足"""
    default_error_code = "PERMISSION_DENIED"


class InvalidTransition(BaseApplicationError):
    """订单状态流转不合法"""
    default_error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Cannot change order status from {current_status} to {target_status}",
            details={"from": current_status, "to": target_status}
        )


class NotFound(BaseApplicationError):
    """资源不存在"""
    default_error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} {resource_id} not found",
            details={"resource": resource, "id": resource_id}
        )


class RemoteFailure(BaseApplicationError):
    """存储/认证协作方调用失败，保留底层错误信息"""
    default_error_code = "REMOTE_FAILURE"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        details = dict(details or {})
        if cause is not None:
            details.setdefault("reason", str(cause) or type(cause).__name__)
        super().__init__(message, details=details)
