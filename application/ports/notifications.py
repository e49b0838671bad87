"""
Order notification port and push message contract.

The reservation service never calls a notifier directly: it records an
``OrderNotificationRequested`` event in the outbox, and the relay hands the
event to whichever ``OrderNotifier`` the composition root configured.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from domain.reservation.events import Audience, NotificationKind, OrderNotificationRequested


@dataclass
class PushMessage:
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


_TEMPLATES: dict[tuple[NotificationKind, Audience], tuple[str, str]] = {
    (NotificationKind.RESERVED, Audience.COOK): (
        "New Order Received!",
        "You have a new order for {quantity} meal(s). Please confirm or decline.",
    ),
    (NotificationKind.CONFIRMED, Audience.CUSTOMER): (
        "Order Confirmed!",
        "Your order has been confirmed! The cook is preparing your meal(s).",
    ),
    (NotificationKind.READY, Audience.CUSTOMER): (
        "Order Ready for Pickup!",
        "Your meal(s) are ready! Please pick them up at the scheduled time.",
    ),
}


def render_push_message(notification: OrderNotificationRequested) -> Optional[PushMessage]:
    """Render the push text; ``None`` for kind/audience pairs with no template."""
    template = _TEMPLATES.get((notification.kind, notification.audience))
    if template is None:
        return None
    title, body = template
    return PushMessage(
        title=title,
        body=body.format(quantity=notification.quantity),
        data={
            "reservationId": notification.reservation_id,
            "type": notification.kind.value,
            "recipientType": notification.audience.value,
        },
    )


class OrderNotifier(Protocol):
    """Delivers one order notification (kind, reservation, audience)."""

    async def send_order_notification(self, notification: OrderNotificationRequested) -> None: ...


class RelayTrigger(Protocol):
    """Asks the outbox relay to run soon; callers treat it as best-effort."""

    async def nudge(self) -> None: ...


__all__ = ["PushMessage", "render_push_message", "OrderNotifier", "RelayTrigger"]
