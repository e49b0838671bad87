"""
Reservation domain events.

Order notifications are recorded as dataclass events and written to the
outbox in the same transaction as the state change; delivery happens later
and never blocks a transition.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import uuid


class NotificationKind(str, Enum):
    RESERVED = "reserved"
    CONFIRMED = "confirmed"
    READY = "ready"


class Audience(str, Enum):
    COOK = "cook"
    CUSTOMER = "customer"


@dataclass
class OrderNotificationRequested:
    kind: NotificationKind
    audience: Audience
    reservation_id: str
    recipient_id: str
    quantity: int
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    topic = "order_notification"

    def to_payload(self) -> dict:
        return {
            "kind": self.kind.value,
            "audience": self.audience.value,
            "reservation_id": self.reservation_id,
            "recipient_id": self.recipient_id,
            "quantity": self.quantity,
            "event_id": self.event_id,
            "occurred_at": self.occurred_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "OrderNotificationRequested":
        return cls(
            kind=NotificationKind(payload["kind"]),
            audience=Audience(payload["audience"]),
            reservation_id=payload["reservation_id"],
            recipient_id=payload["recipient_id"],
            quantity=int(payload.get("quantity") or 0),
            event_id=payload.get("event_id") or uuid.uuid4().hex,
            occurred_at=datetime.fromisoformat(payload["occurred_at"])
            if payload.get("occurred_at")
            else datetime.now(timezone.utc),
        )
