"""Utility helpers for Celery tasks."""
from .dispatcher import CeleryRelayTrigger, TaskDispatcher
from .base_task import BaseTask

__all__ = ["CeleryRelayTrigger", "TaskDispatcher", "BaseTask"]
