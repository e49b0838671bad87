"""Order notifier adapters."""
from .base import BaseOrderNotifier
from .factory import build_order_notifier
from .logging_notifier import LoggingNotifier

__all__ = ["BaseOrderNotifier", "LoggingNotifier", "build_order_notifier"]
