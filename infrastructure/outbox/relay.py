"""
Outbox relay - 将已提交的通知投递给 notifier

至少一次投递：单次调用内用 tenacity 即时重试；仍失败则按指数退避
安排下次投递，超过 max_attempts 进入 dead 状态。
nudge() 只安排后台任务，请求路径不会等待重试。
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Set

from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from application.ports.locks import LockManager
from application.ports.notifications import OrderNotifier
from core.config import OutboxSettings, settings
from core.logging_config import get_logger
from domain.common.exceptions import ResourceBusyException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.outbox.entity import OutboxMessage, OutboxStatus
from domain.reservation.events import OrderNotificationRequested


logger = get_logger(__name__)

RELAY_LOCK_KEY = "outbox:relay"


class UnknownTopicError(Exception):
    """没有对应处理器的消息主题"""


class OutboxRelay:

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifier: OrderNotifier,
        *,
        lock_manager: Optional[LockManager] = None,
        outbox_settings: Optional[OutboxSettings] = None,
        retry_wait_multiplier: float = 0.1,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._lock_manager = lock_manager
        self._settings = outbox_settings or settings.outbox
        self._retry_wait_multiplier = retry_wait_multiplier
        self._background: Set["asyncio.Task[int]"] = set()

    async def nudge(self) -> None:
        """在后台安排一次投递后立即返回，调用方不等待 notifier"""
        task = asyncio.create_task(self.run_once())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    async def wait_idle(self) -> None:
        """等待所有后台投递结束（关闭应用前调用）"""
        while True:
            pending = [task for task in self._background if not task.done()]
            if not pending:
                return
            await asyncio.wait(pending)

    def _on_background_done(self, task: "asyncio.Task[int]") -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("outbox_relay_background_failed", error=f"{type(exc).__name__}: {exc}")

    async def run_once(self) -> int:
        """投递一批到期消息，返回成功条数"""
        if self._lock_manager is None:
            return await self._relay_batch()
        try:
            async with self._lock_manager.acquire(RELAY_LOCK_KEY):
                return await self._relay_batch()
        except ResourceBusyException:
            # 另一个 relay 正在处理同一批
            logger.info("outbox_relay_skipped_busy")
            return 0

    async def _relay_batch(self) -> int:
        # 读取与回写各用一个短事务，投递期间不占用数据库事务
        async with self._uow_factory(readonly=True) as uow:
            messages = await uow.outbox_repository.list_due(
                datetime.now(timezone.utc), limit=self._settings.batch_size
            )
        if not messages:
            return 0

        sent = 0
        for message in messages:
            if await self._dispatch(message):
                sent += 1

        async with self._uow_factory() as uow:
            for message in messages:
                await uow.outbox_repository.update(message)
        logger.info("outbox_relay_batch", due=len(messages), sent=sent)
        return sent

    async def _dispatch(self, message: OutboxMessage) -> bool:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.delivery_retries + 1),
                wait=wait_exponential(multiplier=self._retry_wait_multiplier, max=2.0),
                retry=retry_if_not_exception_type(UnknownTopicError),
                reraise=True,
            ):
                with attempt:
                    await self._deliver(message)
        except Exception as exc:
            message.mark_failed(
                f"{type(exc).__name__}: {exc}",
                max_attempts=self._settings.max_attempts,
                base_backoff_seconds=self._settings.base_backoff_seconds,
            )
            if message.status == OutboxStatus.DEAD:
                logger.error(
                    "outbox_message_dead",
                    message_id=message.id,
                    topic=message.topic,
                    attempts=message.attempts,
                    error=message.last_error,
                )
            else:
                logger.warning(
                    "outbox_delivery_failed",
                    message_id=message.id,
                    topic=message.topic,
                    attempts=message.attempts,
                    next_attempt_at=message.next_attempt_at.isoformat(),
                    error=message.last_error,
                )
            return False
        message.mark_sent()
        return True

    async def _deliver(self, message: OutboxMessage) -> None:
        if message.topic != OrderNotificationRequested.topic:
            raise UnknownTopicError(message.topic)
        await self._notifier.send_order_notification(
            OrderNotificationRequested.from_payload(message.payload)
        )
