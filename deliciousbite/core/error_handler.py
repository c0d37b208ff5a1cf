"""
统一错误处理模块
把业务异常映射为标准化的错误响应

主要功能：
- 统一的错误响应格式
- 业务错误码到HTTP状态码的映射
- 未知异常记录为 system_error 操作日志
"""

import json
import traceback
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from .exceptions import BaseApplicationError
from ..models.base import utc_now


class ErrorResponse:
    """标准错误响应格式"""

    def __init__(self, error_code: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 http_status: int = 400):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def to_json_response(self) -> JSONResponse:
        """转换为FastAPI JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )


class ErrorHandler:
    """全局错误处理器"""

    # 错误代码到HTTP状态码的映射
    ERROR_CODE_STATUS_MAP = {
        "VALIDATION_ERROR": 400,
        "AUTHENTICATION_REQUIRED": 401,
        "PERMISSION_DENIED": 403,
        "RESOURCE_NOT_FOUND": 404,
        "INVALID_STATUS_TRANSITION": 409,
        "REMOTE_FAILURE": 502,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def handle_application_error(cls, error: BaseApplicationError) -> ErrorResponse:
        """处理应用业务异常"""
        http_status = cls.ERROR_CODE_STATUS_MAP.get(error.error_code, 400)

        return ErrorResponse(
            error_code=error.error_code,
            message=error.message,
            details=error.details,
            http_status=http_status
        )

    @classmethod
    def handle_http_exception(cls, error: HTTPException) -> ErrorResponse:
        """处理FastAPI HTTP异常"""
        error_code = "AUTHENTICATION_REQUIRED" if error.status_code == 401 else "HTTP_ERROR"
        return ErrorResponse(
            error_code=error_code,
            message=str(error.detail),
            details={"status_code": error.status_code},
            http_status=error.status_code
        )

    @classmethod
    def handle_validation_error(cls, error: RequestValidationError) -> ErrorResponse:
        """处理请求参数验证错误，按字段列出错误信息"""
        fields = {}
        for item in error.errors():
            loc = [str(p) for p in item.get("loc", ()) if p != "body"]
            fields[".".join(loc) or "body"] = item.get("msg", "invalid")
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"fields": fields},
            http_status=400
        )

    @classmethod
    def handle_unknown_error(cls, error: Exception, request: Optional[Request] = None) -> ErrorResponse:
        """处理未知异常"""
        # 记录详细的错误信息用于调试
        error_details = {
            "type": type(error).__name__,
            "message": str(error),
            "traceback": traceback.format_exc()
        }
        if request is not None:
            error_details["path"] = request.url.path

        cls._log_system_error(request, error_details)

        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="Internal server error",
            details={"error_type": type(error).__name__},
            http_status=500
        )

    @classmethod
    def _log_system_error(cls, request: Optional[Request], error_details: Dict[str, Any]):
        """记录系统错误到 logs 表"""
        container = getattr(request.app.state, "container", None) if request is not None else None
        if container is None:
            print(f"Unhandled error: {error_details}")
            return
        try:
            with container.db.transaction() as con:
                con.execute(
                    "INSERT INTO logs(user_id, actor_id, action, detail_json, created_at) VALUES (?,?,?,?,?)",
                    [None, None, "system_error", json.dumps(error_details), utc_now().isoformat()]
                )
        except Exception:
            # 如果连数据库日志都写不了，就只能打印到控制台
            print(f"Failed to log error to database: {error_details}")


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    """应用异常处理中间件"""
    error_response = ErrorHandler.handle_application_error(exc)
    return error_response.to_json_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP异常处理中间件"""
    error_response = ErrorHandler.handle_http_exception(exc)
    return error_response.to_json_response()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """验证异常处理中间件"""
    error_response = ErrorHandler.handle_validation_error(exc)
    return error_response.to_json_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """通用异常处理中间件"""
    error_response = ErrorHandler.handle_unknown_error(exc, request)
    return error_response.to_json_response()


def create_success_response(data: Any = None, message: str = "OK") -> Dict[str, Any]:
    """创建标准成功响应"""
    response = {
        "success": True,
        "message": message
    }

    if data is not None:
        response["data"] = data

    return response
