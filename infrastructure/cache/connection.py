"""Redis 连接生命周期（应用启动时初始化，关闭时释放）"""
from __future__ import annotations

import asyncio
from typing import Optional

from redis import asyncio as aioredis

from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)

_redis_client: Optional[aioredis.Redis] = None
_lock = asyncio.Lock()


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """初始化全局Redis连接并测试连通性"""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    async with _lock:
        if _redis_client is not None:
            return _redis_client

        redis_url = url or settings.redis.url
        if not redis_url:
            raise RuntimeError("REDIS__URL 未配置，无法初始化Redis")

        client = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        await client.ping()
        _redis_client = client
        logger.info("redis_connected", namespace=settings.redis.namespace)
        return _redis_client


async def shutdown_redis() -> None:
    """关闭Redis连接"""
    global _redis_client

    if _redis_client is not None:
        try:
            await _redis_client.close()
            logger.info("redis_closed")
        finally:
            _redis_client = None
