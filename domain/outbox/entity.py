"""
Outbox 消息实体 - 与业务状态同事务写入，事后异步投递
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
import uuid


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class OutboxStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DEAD = "dead"


@dataclass
class OutboxMessage:
    """待投递消息"""

    topic: str
    payload: dict
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    next_attempt_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sent_at: Optional[datetime] = None

    def __post_init__(self):
        self.next_attempt_at = _ensure_utc(self.next_attempt_at)
        self.created_at = _ensure_utc(self.created_at)
        self.sent_at = _ensure_utc(self.sent_at)

    def mark_sent(self) -> None:
        self.status = OutboxStatus.SENT
        self.sent_at = datetime.now(timezone.utc)
        self.last_error = None

    def mark_failed(self, error: str, *, max_attempts: int, base_backoff_seconds: float) -> None:
        """失败后按指数退避安排下次投递，超过上限进入死信"""
        self.attempts += 1
        self.last_error = error[:500]
        if self.attempts >= max_attempts:
            self.status = OutboxStatus.DEAD
            return
        delay = base_backoff_seconds * (2 ** (self.attempts - 1))
        self.next_attempt_at = datetime.now(timezone.utc) + timedelta(seconds=delay)
