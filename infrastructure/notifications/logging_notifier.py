"""Push sink that writes the rendered notification to the structured log."""
from __future__ import annotations

from application.ports.notifications import PushMessage
from core.logging_config import get_logger
from domain.reservation.events import OrderNotificationRequested

from .base import BaseOrderNotifier


logger = get_logger(__name__)


class LoggingNotifier(BaseOrderNotifier):

    def push(self, notification: OrderNotificationRequested, message: PushMessage) -> None:
        logger.info(
            "order_notification_sent",
            event_id=notification.event_id,
            recipient_id=notification.recipient_id,
            title=message.title,
            body=message.body,
            data=message.data,
        )

    async def _deliver(self, notification: OrderNotificationRequested, message: PushMessage) -> None:
        self.push(notification, message)
