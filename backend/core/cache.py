"""
Redis 缓存连接
提供 Redis 客户端的创建与关闭，客户端以显式依赖的方式传给使用方
"""

import logging
from typing import Optional

import redis.asyncio as redis

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> redis.Redis:
    """根据配置创建 Redis 客户端（不发起连接）"""
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,  # 支持密码认证
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5
    )


async def init_cache(settings: Optional[Settings] = None) -> redis.Redis:
    """
    初始化 Redis 连接

    连接测试失败时仍返回客户端：会话校验按"未登录"处理，Redis 恢复后自动可用
    """
    settings = settings or get_settings()

    client = build_client(settings)
    try:
        await client.ping()
        logger.info(f"Redis 连接成功: {settings.redis_host}:{settings.redis_port}")
    except redis.RedisError as e:
        logger.warning(f"Redis 连接失败，登录功能暂不可用: {e}")
    return client


async def close_cache(client: Optional[redis.Redis]):
    """关闭 Redis 连接"""
    if client:
        await client.aclose()
        logger.info("Redis 连接已关闭")
