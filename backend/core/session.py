"""
会话令牌存储
全局只有一个有效令牌（单作者系统），只保存在 Redis 中，由 Redis 负责过期
"""

import logging
from datetime import timedelta
from typing import Optional, Union

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class TokenStore:
    """
    基于缓存的会话令牌存储

    状态：未登录（键不存在） -> 登录成功写入令牌 -> 注销删除 / TTL 到期

    Usage:
        store = TokenStore(client, key="notebook:token", expire=3600)
        await store.save(token)
        current = await store.load()
    """

    def __init__(
        self,
        client: redis.Redis,
        key: str,
        expire: Union[int, timedelta]
    ):
        self.client = client
        self.key = key
        self.expire = expire

    @property
    def ttl_seconds(self) -> int:
        if isinstance(self.expire, timedelta):
            return int(self.expire.total_seconds())
        return int(self.expire)

    async def save(self, token: str) -> None:
        """写入当前令牌（覆盖旧令牌）"""
        await self.client.set(self.key, token, ex=self.ttl_seconds)

    async def load(self) -> Optional[str]:
        """读取当前令牌，不存在返回 None；Redis 异常直接抛出"""
        return await self.client.get(self.key)

    async def clear(self) -> None:
        """删除当前令牌，键不存在时也视为成功"""
        await self.client.delete(self.key)
