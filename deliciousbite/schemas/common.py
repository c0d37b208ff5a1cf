from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """错误响应格式"""
    success: bool = Field(False, description="请求失败")
    error_code: str = Field(description="错误码")
    message: str = Field(description="错误消息")
    details: Dict[str, Any] = Field(default_factory=dict, description="错误详情")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "success": False,
            "error_code": "INVALID_STATUS_TRANSITION",
            "message": "Cannot change order status from delivered to pending",
            "details": {"from": "delivered", "to": "pending"}
        }
    })


# 接口文档中统一声明的错误响应
ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 502)
}
