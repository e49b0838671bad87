"""Order notification delivery tasks"""
from __future__ import annotations

from celery import shared_task

from application.ports.notifications import render_push_message
from core.logging_config import get_logger
from domain.reservation.events import OrderNotificationRequested
from infrastructure.notifications.logging_notifier import LoggingNotifier

from ..utils.base_task import BaseTask

logger = get_logger(__name__)


@shared_task(
    name="notifications.deliver",
    bind=True,
    base=BaseTask,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def deliver_order_notification(self, payload: dict) -> dict:
    """Render and push one order notification.

    The push sink is the structured log; swap ``LoggingNotifier`` for a real
    push provider adapter to reach devices.
    """
    notification = OrderNotificationRequested.from_payload(payload)
    message = render_push_message(notification)
    if message is None:
        logger.info("order_notification_no_template", event_id=notification.event_id)
        return {"delivered": False}
    LoggingNotifier().push(notification, message)
    return {"delivered": True, "event_id": notification.event_id}
