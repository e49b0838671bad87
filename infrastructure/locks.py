"""
锁管理器实现 - 进程内 asyncio.Lock 与 Redis 分布式锁
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import ResourceBusyException


logger = get_logger(__name__)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class InMemoryLockManager:
    """单进程锁：每个 key 一把 asyncio.Lock，按需创建

    持有者与等待者都计入 users，归零时移除该 key，映射大小只取决于当前并发。
    """

    def __init__(self, blocking_timeout: Optional[float] = None) -> None:
        self._locks: Dict[str, _LockEntry] = {}
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _LockEntry()
        entry.users += 1
        try:
            await self._acquire(entry.lock, key)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    async def _acquire(self, lock: asyncio.Lock, key: str) -> None:
        if self._blocking_timeout is None:
            await lock.acquire()
            return
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._blocking_timeout)
        except asyncio.TimeoutError:
            logger.warning("lock_acquire_timeout", key=key)
            raise ResourceBusyException(key)


class RedisLockManager:
    """
    基于 redis.asyncio 的分布式锁

    键格式 lock:<namespace>:<key>；获取失败抛出 ResourceBusyException
    """

    def __init__(
        self,
        client: aioredis.Redis,
        namespace: Optional[str] = None,
        timeout: Optional[int] = None,
        blocking_timeout: Optional[int] = None,
    ) -> None:
        self._client = client
        self._namespace = (namespace or settings.redis.namespace).strip(":")
        self._timeout = settings.locks.timeout if timeout is None else timeout
        self._blocking_timeout = settings.locks.blocking_timeout if blocking_timeout is None else blocking_timeout

    def _format_key(self, key: str) -> str:
        if not self._namespace:
            return f"lock:{key}"
        return f"lock:{self._namespace}:{key}"

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock_key = self._format_key(key)
        lock = self._client.lock(
            lock_key,
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            logger.error("lock_acquire_error", key=lock_key, error=str(exc))
            raise ResourceBusyException(key) from exc
        if not acquired:
            logger.warning("lock_acquire_timeout", key=lock_key)
            raise ResourceBusyException(key)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as exc:
                # 锁已过期被他人持有时释放会失败，这里只记录
                logger.error("lock_release_failed", key=lock_key, error=str(exc))
