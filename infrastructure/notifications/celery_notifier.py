"""Notifier that hands each rendered notification to a Celery worker."""
from __future__ import annotations

from typing import Optional

from application.ports.notifications import PushMessage
from core.config import NotificationSettings
from core.logging_config import get_logger
from domain.reservation.events import OrderNotificationRequested
from infrastructure.tasks.utils.dispatcher import TaskDispatcher

from .base import BaseOrderNotifier


logger = get_logger(__name__)


class CeleryNotifier(BaseOrderNotifier):

    def __init__(
        self,
        dispatcher: Optional[TaskDispatcher] = None,
        notification_settings: Optional[NotificationSettings] = None,
    ) -> None:
        super().__init__(notification_settings)
        self._dispatcher = dispatcher or TaskDispatcher()

    async def _deliver(self, notification: OrderNotificationRequested, message: PushMessage) -> None:
        self._dispatcher.deliver_notification(notification.to_payload())
        logger.info(
            "order_notification_dispatched",
            event_id=notification.event_id,
            reservation_id=notification.reservation_id,
        )
