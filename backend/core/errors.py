"""
标准错误码体系
提供统一的错误码定义和异常处理

状态语义放在响应体的 status 字段中，HTTP 状态码除"方法不允许"外一律为 200
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - -1: 未分类错误
    - -1xxx: 认证/请求级错误
    - -2xxx: 笔记/标签业务错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0
    DEFAULT_ERROR = -1

    # ==================== 认证/请求级错误 (-1xxx) ====================
    NOT_AUTH = -1000                # 未登录或会话无效
    AUTH_FAILED = -1001             # 口令错误
    LOGOUT_FAILED = -1002           # 注销失败
    ENCODE_ERROR = -1003            # 响应序列化失败
    DECODE_ERROR = -1004            # 请求体解析失败
    PARAMS_ERROR = -1005            # 参数校验失败
    METHOD_NOT_ALLOWED = -1006      # 请求方法不允许

    # ==================== 业务错误 (-2xxx) ====================
    PUBLISH_NOTE_FAILED = -2000
    GET_NOTES_FAILED = -2001
    GET_NOTE_FAILED = -2002
    UPDATE_NOTE_FAILED = -2003
    DELETE_NOTE_FAILED = -2004
    GET_TAGS_FAILED = -2010


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "操作成功",
    ErrorCode.DEFAULT_ERROR: "操作失败",

    ErrorCode.NOT_AUTH: "请先登录",
    ErrorCode.AUTH_FAILED: "口令错误",
    ErrorCode.LOGOUT_FAILED: "注销失败",
    ErrorCode.ENCODE_ERROR: "响应序列化失败",
    ErrorCode.DECODE_ERROR: "请求体解析失败",
    ErrorCode.PARAMS_ERROR: "参数验证失败",
    ErrorCode.METHOD_NOT_ALLOWED: "请求方法不允许",

    ErrorCode.PUBLISH_NOTE_FAILED: "发布笔记失败",
    ErrorCode.GET_NOTES_FAILED: "获取笔记列表失败",
    ErrorCode.GET_NOTE_FAILED: "获取笔记失败",
    ErrorCode.UPDATE_NOTE_FAILED: "更新笔记失败",
    ErrorCode.DELETE_NOTE_FAILED: "删除笔记失败",
    ErrorCode.GET_TAGS_FAILED: "获取标签失败",
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.GET_NOTE_FAILED, "笔记不存在")
    """

    def __init__(
        self,
        code: int = ErrorCode.DEFAULT_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse（HTTP 状态码固定为 200）"""
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=self.to_dict()
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "status": int(self.code),
            "message": self.message,
            "data": self.data
        }


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "参数验证失败"):
        super().__init__(code=ErrorCode.PARAMS_ERROR, message=message)


class AuthException(AppException):
    """认证异常"""

    def __init__(
        self,
        code: int = ErrorCode.NOT_AUTH,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(
        self,
        resource: str = "资源",
        resource_id: Any = None,
        code: int = ErrorCode.DEFAULT_ERROR
    ):
        message = f"{resource}不存在"
        if resource_id:
            message = f"{resource} (ID: {resource_id}) 不存在"
        super().__init__(code=code, message=message)


class StorageException(AppException):
    """存储异常（事务已回滚）"""

    def __init__(
        self,
        code: int = ErrorCode.DEFAULT_ERROR,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class ExtractionException(ValueError):
    """HTML 纯文本提取失败（只在本地降级处理，不返回给调用方）"""
    pass


# ==================== 异常处理器 ====================

async def app_exception_handler(request, exc: AppException):
    """AppException 异常处理器"""
    return exc.to_response()


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(AppException, app_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        code = ErrorCode.PARAMS_ERROR
        for error in exc.errors():
            # 请求体不是合法 JSON
            if error["type"] == "json_invalid":
                code = ErrorCode.DECODE_ERROR
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        logger.warning(f"请求参数校验失败: {errors}")
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=error_response(code)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return JSONResponse(
                status_code=exc.status_code,
                content=error_response(ErrorCode.METHOD_NOT_ALLOWED)
            )

        message = str(exc.detail) if exc.detail else ERROR_MESSAGES[ErrorCode.DEFAULT_ERROR]
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(ErrorCode.DEFAULT_ERROR, message)
        )


# ==================== 响应构建器 ====================

def success_response(
    data: Any = None,
    message: str = "操作成功"
) -> dict:
    """构建成功响应"""
    return {
        "status": int(ErrorCode.SUCCESS),
        "message": message,
        "data": data
    }


def error_response(
    code: int = ErrorCode.DEFAULT_ERROR,
    message: Optional[str] = None,
    data: Any = None
) -> dict:
    """构建错误响应"""
    return {
        "status": int(code),
        "message": message or ERROR_MESSAGES.get(code, "操作失败"),
        "data": data
    }
