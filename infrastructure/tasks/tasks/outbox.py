"""Outbox relay task (scheduled by beat, also triggered after commits)"""
from __future__ import annotations

import asyncio
from functools import partial

from celery import shared_task

from core.config import settings
from core.logging_config import get_logger
from infrastructure.database import build_engine, build_session_factory
from infrastructure.notifications.factory import build_order_notifier
from infrastructure.outbox.relay import OutboxRelay
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

from ..utils.base_task import BaseTask

logger = get_logger(__name__)


async def _relay_once() -> int:
    # 每次任务独立创建引擎，避免连接池跨事件循环复用
    engine = build_engine(settings.database.url, echo=settings.database.echo)
    session_factory = build_session_factory(engine)
    try:
        relay = OutboxRelay(
            partial(SQLAlchemyUnitOfWork, session_factory=session_factory),
            build_order_notifier(),
        )
        return await relay.run_once()
    finally:
        await engine.dispose()


@shared_task(name="outbox.relay", bind=True, base=BaseTask)
def relay_outbox(self) -> dict:
    sent = asyncio.run(_relay_once())
    logger.info("outbox_relay_task_done", sent=sent)
    return {"sent": sent}
