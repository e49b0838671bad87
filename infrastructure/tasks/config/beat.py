"""Celery beat schedule configuration.

The outbox relay runs periodically so notifications committed while no API
process nudged the relay are still delivered.
"""
from __future__ import annotations

from core.config import settings

CELERY_BEAT_SCHEDULE = {
    "outbox-relay": {
        "task": "outbox.relay",
        "schedule": float(settings.outbox.relay_interval_seconds),
    },
}
