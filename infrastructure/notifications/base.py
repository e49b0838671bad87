"""通知适配器基类 - 统一处理开关与模板渲染"""
from __future__ import annotations

from typing import Optional

from application.ports.notifications import PushMessage, render_push_message
from core.config import NotificationSettings, settings
from core.logging_config import get_logger
from domain.reservation.events import OrderNotificationRequested


logger = get_logger(__name__)


class BaseOrderNotifier:
    """子类只需实现 _deliver"""

    def __init__(self, notification_settings: Optional[NotificationSettings] = None) -> None:
        self._settings = notification_settings or settings.notifications

    def enabled(self) -> bool:
        return self._settings.push_enabled and self._settings.order_updates

    async def send_order_notification(self, notification: OrderNotificationRequested) -> None:
        if not self.enabled():
            logger.info(
                "order_notification_disabled",
                reservation_id=notification.reservation_id,
                kind=notification.kind.value,
            )
            return
        message = render_push_message(notification)
        if message is None:
            logger.info(
                "order_notification_no_template",
                reservation_id=notification.reservation_id,
                kind=notification.kind.value,
                audience=notification.audience.value,
            )
            return
        await self._deliver(notification, message)

    async def _deliver(self, notification: OrderNotificationRequested, message: PushMessage) -> None:
        raise NotImplementedError
