"""Pytest bootstrap configuration.

Environment overrides are applied before any module that reads settings is
imported; every test gets its own SQLite file database.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("NOTIFICATIONS__BACKEND", "logging")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///./homecook-test.db")

from decimal import Decimal
from functools import partial
from typing import List

import pytest

from api.dependencies import build_container
from application.dtos.meals import MealCreateDTO
from domain.reservation.events import OrderNotificationRequested
from infrastructure.database import build_engine, build_session_factory, create_tables, drop_tables
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


class RecordingNotifier:
    """Collects delivered notifications; fails the first ``fail_times`` calls."""

    def __init__(self, fail_times: int = 0) -> None:
        self.sent: List[OrderNotificationRequested] = []
        self.calls = 0
        self._fail_times = fail_times

    async def send_order_notification(self, notification: OrderNotificationRequested) -> None:
        self.calls += 1
        if self.calls <= self._fail_times:
            raise ConnectionError("push provider unavailable")
        self.sent.append(notification)

    def kinds(self) -> List[tuple]:
        return [(n.kind.value, n.audience.value, n.recipient_id) for n in self.sent]


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'homecook.db'}")
    await create_tables(eng)
    yield eng
    await drop_tables(eng)
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory):
    return partial(SQLAlchemyUnitOfWork, session_factory=session_factory)


@pytest.fixture
def notifier_cls():
    return RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def container(session_factory, notifier):
    container = build_container(session_factory, notifier=notifier)
    yield container
    await container.relay.wait_idle()


@pytest.fixture
def reservation_service(container):
    return container.reservation_service()


@pytest.fixture
def wallet_service(container):
    return container.wallet_service()


@pytest.fixture
def meal_service(container):
    return container.meal_service()


@pytest.fixture
async def meal(meal_service):
    """厨师 cook-1 的餐品：单价 12.50，可售 10 份"""
    return await meal_service.create_meal(
        MealCreateDTO(
            id="meal-1",
            cook_id="cook-1",
            name="Braised Pork Rice",
            price=Decimal("12.50"),
            available_quantity=10,
        )
    )


@pytest.fixture
async def funded_customer(wallet_service):
    """顾客 customer-1 的钱包，余额 100.00"""
    return await wallet_service.initialize_wallet("customer-1", Decimal("100.00"))


@pytest.fixture
async def client(container):
    """绕过 lifespan，直接挂载测试用容器"""
    from httpx import ASGITransport, AsyncClient

    from main import app

    app.state.container = container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.container = None
