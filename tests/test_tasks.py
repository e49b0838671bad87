import pytest

from domain.reservation.events import Audience, NotificationKind, OrderNotificationRequested
from infrastructure.notifications.celery_notifier import CeleryNotifier
from infrastructure.tasks import celery_app
from infrastructure.tasks.config.beat import CELERY_BEAT_SCHEDULE
from infrastructure.tasks.tasks.notifications import deliver_order_notification
from infrastructure.tasks.utils.dispatcher import CeleryRelayTrigger


class StubDispatcher:
    def __init__(self):
        self.payloads = []
        self.relay_triggers = 0

    def deliver_notification(self, payload):
        self.payloads.append(payload)

    def trigger_outbox_relay(self):
        self.relay_triggers += 1


def _event(kind=NotificationKind.READY, audience=Audience.CUSTOMER):
    return OrderNotificationRequested(
        kind=kind,
        audience=audience,
        reservation_id="reservation-1",
        recipient_id="customer-1",
        quantity=1,
    )


def test_eager_mode_in_test_environment():
    assert celery_app.conf.task_always_eager is True
    assert celery_app.conf.task_routes["notifications.*"] == {"queue": "high"}
    assert CELERY_BEAT_SCHEDULE["outbox-relay"]["task"] == "outbox.relay"


def test_deliver_task_renders_and_pushes():
    event = _event()
    result = deliver_order_notification.apply(kwargs={"payload": event.to_payload()}).get()
    assert result == {"delivered": True, "event_id": event.event_id}


def test_deliver_task_without_template():
    result = deliver_order_notification.apply(
        kwargs={"payload": _event(audience=Audience.COOK).to_payload()}
    ).get()
    assert result == {"delivered": False}


@pytest.mark.asyncio
async def test_celery_notifier_hands_payload_to_dispatcher():
    dispatcher = StubDispatcher()
    event = _event()
    await CeleryNotifier(dispatcher=dispatcher).send_order_notification(event)
    assert dispatcher.payloads == [event.to_payload()]


@pytest.mark.asyncio
async def test_celery_relay_trigger():
    dispatcher = StubDispatcher()
    await CeleryRelayTrigger(dispatcher).nudge()
    assert dispatcher.relay_triggers == 1
