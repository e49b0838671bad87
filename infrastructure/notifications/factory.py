"""按配置选择通知适配器"""
from __future__ import annotations

from typing import Optional

from application.ports.notifications import OrderNotifier
from core.config import settings

from .logging_notifier import LoggingNotifier


def build_order_notifier(backend: Optional[str] = None) -> OrderNotifier:
    backend = (backend or settings.notifications.backend).lower()
    if backend == "celery":
        from .celery_notifier import CeleryNotifier

        return CeleryNotifier()
    if backend == "logging":
        return LoggingNotifier()
    raise ValueError(f"不支持的通知后端: {backend}")
