"""
中间件模块
记录每个请求的开始与结束
"""

import time
import uuid
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    记录所有API请求的路径、耗时和慢请求
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths=None,  # 支持 list 或 set
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        default_skip = [
            "/health",
            "/api/docs",
            "/api/redoc",
            "/api/openapi.json",
            "/favicon.ico"
        ]
        self.skip_paths = list(skip_paths) if skip_paths else default_skip
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        """检查是否跳过日志记录"""
        return any(path.startswith(p) for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.info(f"[{request_id}] 收到请求 {method} {path}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.error(f"[{request_id}] 请求异常 {method} {path} | {duration_ms}ms | {e}")
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(f"[{request_id}] 慢请求 {method} {path} | {response.status_code} | {duration_ms}ms")
        else:
            logger.info(f"[{request_id}] 请求完成 {method} {path} | {response.status_code} | {duration_ms}ms")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
