"""
API依赖项 - 组合根

锁管理器、列表缓存、通知适配器与 outbox relay 的生命周期都在这里，
由 main.py 的 lifespan 创建并挂到 app.state；未经过 lifespan 的场景
（例如直接用 ASGITransport 调用）按默认配置懒加载一份。
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from fastapi import Depends, Request
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from application.ports.cache import ReservationListCache
from application.ports.locks import LockManager
from application.ports.notifications import OrderNotifier, RelayTrigger
from application.services.meal_service import MealApplicationService
from application.services.reservation_service import ReservationApplicationService
from application.services.wallet_service import WalletApplicationService
from core.config import settings
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.cache import InMemoryReservationListCache, RedisReservationListCache
from infrastructure.database import AsyncSessionLocal
from infrastructure.locks import InMemoryLockManager, RedisLockManager
from infrastructure.notifications import build_order_notifier
from infrastructure.outbox import OutboxRelay
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@dataclass
class ServiceContainer:
    uow_factory: Callable[..., AbstractUnitOfWork]
    lock_manager: LockManager
    reservation_cache: ReservationListCache
    notifier: OrderNotifier
    relay: OutboxRelay
    relay_trigger: RelayTrigger

    def reservation_service(self) -> ReservationApplicationService:
        return ReservationApplicationService(
            uow_factory=self.uow_factory,
            lock_manager=self.lock_manager,
            cache=self.reservation_cache,
            relay_trigger=self.relay_trigger,
        )

    def wallet_service(self) -> WalletApplicationService:
        return WalletApplicationService(
            uow_factory=self.uow_factory,
            lock_manager=self.lock_manager,
            reservation_cache=self.reservation_cache,
        )

    def meal_service(self) -> MealApplicationService:
        return MealApplicationService(uow_factory=self.uow_factory)


def build_container(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    *,
    redis_client: Optional[aioredis.Redis] = None,
    notifier: Optional[OrderNotifier] = None,
) -> ServiceContainer:
    """按配置装配依赖；提供 redis_client 时使用分布式锁与 Redis 缓存"""
    uow_factory = partial(SQLAlchemyUnitOfWork, session_factory=session_factory)

    if redis_client is not None:
        lock_manager: LockManager = RedisLockManager(redis_client)
        cache: ReservationListCache = RedisReservationListCache(redis_client)
    else:
        lock_manager = InMemoryLockManager(blocking_timeout=settings.locks.blocking_timeout)
        cache = InMemoryReservationListCache()

    notifier = notifier or build_order_notifier()
    relay = OutboxRelay(uow_factory, notifier, lock_manager=lock_manager)

    relay_trigger: RelayTrigger = relay
    if settings.notifications.backend.lower() == "celery":
        from infrastructure.tasks.utils.dispatcher import CeleryRelayTrigger

        relay_trigger = CeleryRelayTrigger()

    return ServiceContainer(
        uow_factory=uow_factory,
        lock_manager=lock_manager,
        reservation_cache=cache,
        notifier=notifier,
        relay=relay,
        relay_trigger=relay_trigger,
    )


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = build_container()
        request.app.state.container = container
    return container


async def get_reservation_service(
    container: ServiceContainer = Depends(get_container),
) -> ReservationApplicationService:
    return container.reservation_service()


async def get_wallet_service(
    container: ServiceContainer = Depends(get_container),
) -> WalletApplicationService:
    return container.wallet_service()


async def get_meal_service(
    container: ServiceContainer = Depends(get_container),
) -> MealApplicationService:
    return container.meal_service()
