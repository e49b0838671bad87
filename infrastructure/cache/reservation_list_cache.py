"""预订列表缓存实现"""
from __future__ import annotations

import json
import time
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from application.ports.cache import ListScope
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _json_loads(value: Optional[str]) -> Any:
    if value is None:
        return None
    return json.loads(value)


def _cache_key(scope: ListScope, user_id: str) -> str:
    return f"reservations:{ListScope(scope).value}:{user_id}"


class InMemoryReservationListCache:
    """进程内缓存，带 TTL（ttl<=0 表示不过期）"""

    def __init__(self, ttl: Optional[int] = None) -> None:
        self._ttl = settings.redis.default_ttl if ttl is None else ttl
        self._entries: dict[str, tuple[float, list[dict[str, Any]]]] = {}

    async def get(self, scope: ListScope, user_id: str) -> Optional[list[dict[str, Any]]]:
        key = _cache_key(scope, user_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, items = entry
        if expires_at and expires_at < time.monotonic():
            self._entries.pop(key, None)
            return None
        return [dict(item) for item in items]

    async def set(self, scope: ListScope, user_id: str, items: list[dict[str, Any]]) -> None:
        expires_at = time.monotonic() + self._ttl if self._ttl and self._ttl > 0 else 0.0
        self._entries[_cache_key(scope, user_id)] = (expires_at, [dict(item) for item in items])

    async def invalidate(self, scope: ListScope, user_id: str) -> None:
        self._entries.pop(_cache_key(scope, user_id), None)


class RedisReservationListCache:
    """基于Redis的预订列表缓存；Redis 异常只记录日志，读路径回退到数据库"""

    def __init__(self, client: aioredis.Redis, namespace: Optional[str] = None, ttl: Optional[int] = None) -> None:
        self._client = client
        self._namespace = (namespace or settings.redis.namespace).strip(":")
        self._ttl = settings.redis.default_ttl if ttl is None else ttl

    def _format_key(self, scope: ListScope, user_id: str) -> str:
        key = _cache_key(scope, user_id)
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    async def get(self, scope: ListScope, user_id: str) -> Optional[list[dict[str, Any]]]:
        key = self._format_key(scope, user_id)
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            logger.warning("reservation_cache_get_failed", key=key, error=str(exc))
            return None
        return _json_loads(value)

    async def set(self, scope: ListScope, user_id: str, items: list[dict[str, Any]]) -> None:
        key = self._format_key(scope, user_id)
        payload = _json_dumps(items)
        try:
            if self._ttl and self._ttl > 0:
                await self._client.set(key, payload, ex=self._ttl)
            else:
                await self._client.set(key, payload)
        except RedisError as exc:
            logger.warning("reservation_cache_set_failed", key=key, error=str(exc))

    async def invalidate(self, scope: ListScope, user_id: str) -> None:
        key = self._format_key(scope, user_id)
        try:
            await self._client.delete(key)
        except RedisError as exc:
            logger.warning("reservation_cache_invalidate_failed", key=key, error=str(exc))
