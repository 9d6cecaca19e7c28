"""
D18 Notebook 核心模块
提供服务的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, async_session, transaction
- 口令与令牌: hash_password, verify_password, generate_token
- 缓存与会话: init_cache, close_cache, TokenStore
- 分页工具: PaginationParams, PageWindow, compute_window
- 错误处理: ErrorCode, AppException, success_response, error_response
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, async_session, transaction, init_db, close_db

# 口令与令牌
from .security import hash_password, verify_password, generate_token, tokens_match

# 缓存与会话
from .cache import init_cache, close_cache
from .session import TokenStore

# 分页工具
from .pagination import PaginationParams, PageWindow, compute_window

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    StorageException,
    ExtractionException,
    success_response,
    error_response,
    register_exception_handlers
)

# 中间件
from .middleware import RequestLoggingMiddleware


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 数据库
    "Base",
    "async_session",
    "transaction",
    "init_db",
    "close_db",

    # 口令与令牌
    "hash_password",
    "verify_password",
    "generate_token",
    "tokens_match",

    # 缓存与会话
    "init_cache",
    "close_cache",
    "TokenStore",

    # 分页
    "PaginationParams",
    "PageWindow",
    "compute_window",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "AuthException",
    "NotFoundException",
    "StorageException",
    "ExtractionException",
    "success_response",
    "error_response",
    "register_exception_handlers",

    # 中间件
    "RequestLoggingMiddleware",
]
