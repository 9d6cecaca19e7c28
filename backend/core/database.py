"""
数据库连接管理
提供异步数据库连接、会话管理和事务封装
"""

import logging
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import (
    create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.exc import SQLAlchemyError
from typing import AsyncGenerator, Optional

from .config import get_settings
from .errors import ErrorCode, StorageException

logger = logging.getLogger(__name__)
settings = get_settings()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    根据连接串创建异步引擎

    MySQL 使用连接池；SQLite（测试环境）使用默认池配置
    """
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False}
        )
    return create_async_engine(
        url,
        echo=echo,  # 禁用 SQL 详细输出，避免日志过多
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """创建会话工厂"""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


engine = build_engine(settings.db_url)

# 会话工厂
async_session = build_session_factory(engine)


class Base(DeclarativeBase):
    """模型基类"""
    pass


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
    error_code: int = ErrorCode.DEFAULT_ERROR,
    message: Optional[str] = None
) -> AsyncGenerator[AsyncSession, None]:
    """
    在单个事务中执行一组操作

    正常退出时提交；任何异常都会整体回滚。
    SQLAlchemy 异常统一转换为 StorageException（携带调用方给出的状态码），
    业务异常（AppException）原样抛出。

    Usage:
        async with transaction(async_session, ErrorCode.PUBLISH_NOTE_FAILED) as db:
            note_id = await NoteRepository(db).insert(...)
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error(f"事务执行失败，已回滚: {e}")
            raise StorageException(code=error_code, message=message) from e
        except Exception:
            logger.error("事务执行失败，已回滚")
            raise


async def init_db(bind: Optional[AsyncEngine] = None):
    """初始化数据库（创建所有表，已存在的表跳过）"""
    # 确保模型已注册到 Base.metadata
    from modules.notebook import notebook_models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.debug(f"数据库表初始化完成: {', '.join(Base.metadata.tables)}")


async def close_db():
    """关闭数据库连接"""
    await engine.dispose()
