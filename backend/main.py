"""
D18 Notebook - 主入口
基于FastAPI的个人笔记发布服务

- 请求日志中间件
- 标准化错误处理（业务状态码放在响应体中）
- 单会话口令登录（令牌保存在 Redis）
- 无用标签后台清理
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.database import init_db, close_db, async_session
from core.cache import init_cache, close_cache
from core.session import TokenStore
from core.scheduler import get_scheduler
from core.middleware import RequestLoggingMiddleware
from core.errors import ErrorCode, register_exception_handlers, error_response
from utils.background_tasks import BackgroundTaskRunner

from modules.notebook.notebook_router import router as notebook_router
from modules.notebook.notebook_services import ContentService

settings = get_settings()


def setup_logging():
    """配置日志（级别与输出文件来自配置）"""
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )

    # 减少第三方库的日志输出
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    logger.info(f"🚀 正在启动 {settings.app_name} v{settings.app_version}...")

    # 1. 初始化数据库
    await init_db()

    # 2. 初始化 Redis（只保存会话令牌）
    cache_client = await init_cache(settings)

    # 3. 组装服务
    tasks = BackgroundTaskRunner()
    token_store = TokenStore(cache_client, key=settings.token_key, expire=settings.token_expire)
    service = ContentService(async_session, token_store, tasks, settings)
    app.state.content_service = service

    # 4. 定期清理无用标签（可选）
    scheduler = get_scheduler()
    scheduler.start()
    if settings.tag_sweep_interval > 0:
        await scheduler.schedule_periodic(
            service.sweep_orphan_tags,
            interval_seconds=settings.tag_sweep_interval,
            name="无用标签清理"
        )
        logger.info(f"✅ 无用标签定期清理已启用（间隔 {settings.tag_sweep_interval}s）")

    logger.info(f"🎉 {settings.app_name} 启动完成!")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("🛑 系统关闭中...")
    await tasks.shutdown()
    await scheduler.stop()
    await close_cache(cache_client)
    await close_db()
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="个人笔记发布服务",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# ==================== 中间件配置（顺序重要，后添加的先执行） ====================

# 1. CORS 跨域配置（登录态依赖 Cookie）
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制为具体域名
    allow_credentials=True,
    allow_methods=["POST"],
    allow_headers=["*"]
)

# 2. 请求日志中间件
app.add_middleware(
    RequestLoggingMiddleware,
    skip_paths=["/api/docs", "/api/redoc", "/api/openapi.json"],
    slow_request_threshold=1.0  # 超过1秒的请求记录为慢请求
)


# ==================== 异常处理器 ====================
register_exception_handlers(app)


# 全局未捕获异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=200,
        content=error_response(ErrorCode.DEFAULT_ERROR, "服务器内部错误，请稍后重试")
    )


# ==================== 注册路由 ====================
app.include_router(notebook_router, prefix="/api", tags=["笔记本"])


# ==================== 启动入口 ====================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
