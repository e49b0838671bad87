"""Small dispatching helpers to decouple Celery from callers."""
from __future__ import annotations

from typing import Any, Dict

from ..config.celery import celery_app


class TaskDispatcher:
    """Internal facade used by adapters to schedule tasks."""

    def deliver_notification(self, payload: Dict[str, Any]) -> None:
        """Queue one order notification; runs inline when Celery is eager."""
        from ..tasks.notifications import deliver_order_notification

        deliver_order_notification.apply_async(kwargs={"payload": payload})

    def trigger_outbox_relay(self) -> None:
        celery_app.send_task("outbox.relay")


class CeleryRelayTrigger:
    """RelayTrigger that asks a worker to run the outbox relay."""

    def __init__(self, dispatcher: TaskDispatcher | None = None) -> None:
        self._dispatcher = dispatcher or TaskDispatcher()

    async def nudge(self) -> None:
        self._dispatcher.trigger_outbox_relay()
