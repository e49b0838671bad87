import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from application.dtos.meals import MealCreateDTO
from application.dtos.reservations import RatingSubmitDTO, ReservationCreateDTO
from application.ports.cache import ListScope
from domain.common.exceptions import (
    DomainValidationException,
    InsufficientFundsException,
    InsufficientMealQuantityException,
    InvalidReservationTransitionException,
    MealNotFoundException,
    ReservationAlreadyRatedException,
    ReservationNotFoundException,
)
from domain.reservation.entity import ReservationPaymentStatus, ReservationStatus
from domain.user.entity import UserType


def _create_dto(**overrides) -> ReservationCreateDTO:
    params = dict(
        meal_id="meal-1",
        customer_id="customer-1",
        quantity=2,
        pickup_time=datetime.now(timezone.utc) + timedelta(hours=3),
    )
    params.update(overrides)
    return ReservationCreateDTO(**params)


async def _advance(service, reservation_id, *statuses):
    result = None
    for status in statuses:
        result = await service.update_reservation_status(reservation_id, status)
    return result


@pytest.mark.asyncio
async def test_full_lifecycle_moves_money(reservation_service, wallet_service, meal_service, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    assert reservation.status == ReservationStatus.PENDING
    assert reservation.total_price == Decimal("25.00")
    assert reservation.cook_id == "cook-1"
    assert (await meal_service.get_meal("meal-1")).available_quantity == 8

    ready = await _advance(
        reservation_service,
        reservation.id,
        ReservationStatus.CONFIRMED,
        ReservationStatus.READY_FOR_PICKUP,
    )
    assert ready.payment_id is not None
    assert ready.payment_status == ReservationPaymentStatus.PENDING
    assert (await wallet_service.get_wallet("customer-1")).balance == Decimal("75.00")
    cook = await wallet_service.get_wallet("cook-1")
    assert cook.pending_amount == Decimal("25.00")
    assert cook.balance == Decimal("0.00")

    completed = await reservation_service.update_reservation_status(reservation.id, ReservationStatus.COMPLETED)
    assert completed.status == ReservationStatus.COMPLETED
    assert completed.payment_status == ReservationPaymentStatus.PAID

    summary = await wallet_service.get_earnings_summary("cook-1")
    assert summary.available_balance == Decimal("25.00")
    assert summary.pending_earnings == Decimal("0.00")
    assert summary.total_earned == Decimal("25.00")

    # 库存只在下单时扣减
    assert (await meal_service.get_meal("meal-1")).available_quantity == 8


@pytest.mark.asyncio
async def test_notifications_are_delivered_after_commit(reservation_service, container, notifier, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    await _advance(
        reservation_service,
        reservation.id,
        ReservationStatus.CONFIRMED,
        ReservationStatus.READY_FOR_PICKUP,
        ReservationStatus.COMPLETED,
    )
    await container.relay.wait_idle()
    assert notifier.kinds() == [
        ("reserved", "cook", "cook-1"),
        ("confirmed", "customer", "customer-1"),
        ("ready", "customer", "customer-1"),
    ]
    assert all(n.reservation_id == reservation.id for n in notifier.sent)


@pytest.mark.asyncio
async def test_create_validations(reservation_service, meal, funded_customer):
    with pytest.raises(MealNotFoundException):
        await reservation_service.create_reservation(_create_dto(meal_id="meal-404"))
    with pytest.raises(InsufficientMealQuantityException):
        await reservation_service.create_reservation(_create_dto(quantity=11))
    with pytest.raises(DomainValidationException):
        await reservation_service.create_reservation(_create_dto(cook_id="cook-2"))
    with pytest.raises(DomainValidationException):
        await reservation_service.create_reservation(_create_dto(customer_id="cook-1"))


@pytest.mark.asyncio
async def test_create_initializes_wallets_lazily(reservation_service, wallet_service, meal):
    await reservation_service.create_reservation(_create_dto(customer_id="newcomer"))
    wallet = await wallet_service.get_wallet("newcomer")
    assert wallet.balance == Decimal("0.00")
    assert (await wallet_service.get_wallet("cook-1")).balance == Decimal("0.00")


@pytest.mark.asyncio
async def test_ready_without_funds_keeps_reservation_confirmed(
    reservation_service, wallet_service, container, notifier, meal
):
    await wallet_service.initialize_wallet("customer-1", Decimal("10.00"))
    reservation = await reservation_service.create_reservation(_create_dto())
    await reservation_service.update_reservation_status(reservation.id, ReservationStatus.CONFIRMED)

    with pytest.raises(InsufficientFundsException):
        await reservation_service.update_reservation_status(reservation.id, ReservationStatus.READY_FOR_PICKUP)

    current = await reservation_service.get_reservation(reservation.id)
    assert current.status == ReservationStatus.CONFIRMED
    assert current.payment_id is None
    assert (await wallet_service.get_wallet("customer-1")).balance == Decimal("10.00")
    assert (await wallet_service.get_wallet("cook-1")).pending_amount == Decimal("0.00")
    await container.relay.wait_idle()
    assert [k for k, _, _ in notifier.kinds()] == ["reserved", "confirmed"]


@pytest.mark.asyncio
async def test_invalid_transition_is_rejected(reservation_service, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    with pytest.raises(InvalidReservationTransitionException):
        await reservation_service.update_reservation_status(reservation.id, ReservationStatus.COMPLETED)
    assert (await reservation_service.get_reservation(reservation.id)).status == ReservationStatus.PENDING


@pytest.mark.asyncio
async def test_reapplying_current_status_is_a_no_op(
    reservation_service, wallet_service, container, notifier, meal, funded_customer
):
    reservation = await reservation_service.create_reservation(_create_dto())
    await _advance(reservation_service, reservation.id, ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP)
    again = await reservation_service.update_reservation_status(reservation.id, ReservationStatus.READY_FOR_PICKUP)

    assert again.status == ReservationStatus.READY_FOR_PICKUP
    assert (await wallet_service.get_wallet("customer-1")).balance == Decimal("75.00")
    assert len(await wallet_service.get_transaction_history("customer-1")) == 1
    await container.relay.wait_idle()
    assert [k for k, _, _ in notifier.kinds()].count("ready") == 1


@pytest.mark.asyncio
async def test_concurrent_confirmations_are_serialized(reservation_service, container, notifier, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    results = await asyncio.gather(
        reservation_service.update_reservation_status(reservation.id, ReservationStatus.CONFIRMED),
        reservation_service.update_reservation_status(reservation.id, ReservationStatus.CONFIRMED),
    )
    assert {r.status for r in results} == {ReservationStatus.CONFIRMED}
    await container.relay.wait_idle()
    assert [k for k, _, _ in notifier.kinds()].count("confirmed") == 1


@pytest.mark.asyncio
async def test_cancel_rules(reservation_service, meal, funded_customer):
    pending = await reservation_service.create_reservation(_create_dto(quantity=1))
    cancelled = await reservation_service.cancel_reservation(pending.id)
    assert cancelled.status == ReservationStatus.CANCELLED
    assert cancelled.payment_status is None

    ready = await reservation_service.create_reservation(_create_dto(quantity=1))
    await _advance(reservation_service, ready.id, ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP)
    with pytest.raises(InvalidReservationTransitionException):
        await reservation_service.cancel_reservation(ready.id)

    with pytest.raises(ReservationNotFoundException):
        await reservation_service.cancel_reservation("reservation-missing")


@pytest.mark.asyncio
async def test_total_price_survives_price_change(reservation_service, meal_service, wallet_service, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    await meal_service.update_price("meal-1", Decimal("20.00"))

    ready = await _advance(
        reservation_service,
        reservation.id,
        ReservationStatus.CONFIRMED,
        ReservationStatus.READY_FOR_PICKUP,
    )
    assert ready.total_price == Decimal("25.00")
    assert (await wallet_service.get_wallet("customer-1")).balance == Decimal("75.00")

    later = await reservation_service.create_reservation(_create_dto(quantity=1))
    assert later.total_price == Decimal("20.00")


@pytest.mark.asyncio
async def test_rating_updates_meal_cook_and_customer(reservation_service, meal_service, uow_factory, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())

    with pytest.raises(InvalidReservationTransitionException):
        await reservation_service.submit_rating(reservation.id, RatingSubmitDTO(meal_rating=5, cook_rating=5))

    await _advance(
        reservation_service,
        reservation.id,
        ReservationStatus.CONFIRMED,
        ReservationStatus.READY_FOR_PICKUP,
        ReservationStatus.COMPLETED,
    )
    rated = await reservation_service.submit_rating(
        reservation.id,
        RatingSubmitDTO(meal_rating=4, cook_rating=5, review_text="Great rice", customer_name="Ana"),
    )
    assert rated.rating.meal_rating == 4
    assert rated.rating.customer_id == "customer-1"

    refreshed_meal = await meal_service.get_meal("meal-1")
    assert refreshed_meal.rating == 4.0
    assert refreshed_meal.review_count == 1

    async with uow_factory(readonly=True) as uow:
        cook = await uow.user_repository.get_by_id("cook-1")
        customer = await uow.user_repository.get_by_id("customer-1")
    assert cook.user_type == UserType.COOK
    assert cook.rating == 5.0
    assert cook.rating_count == 1
    assert cook.reviews_written == 0
    assert customer.reviews_written == 1
    assert customer.rating_count == 0

    with pytest.raises(ReservationAlreadyRatedException):
        await reservation_service.submit_rating(reservation.id, RatingSubmitDTO(meal_rating=1, cook_rating=1))
    assert (await meal_service.get_meal("meal-1")).review_count == 1


@pytest.mark.asyncio
async def test_lists_are_cached_and_invalidated(reservation_service, container, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())

    listed = await reservation_service.list_customer_reservations("customer-1")
    assert [r.id for r in listed] == [reservation.id]
    assert await container.reservation_cache.get(ListScope.CUSTOMER, "customer-1") is not None

    await reservation_service.update_reservation_status(reservation.id, ReservationStatus.CONFIRMED)
    assert await container.reservation_cache.get(ListScope.CUSTOMER, "customer-1") is None
    assert await container.reservation_cache.get(ListScope.COOK, "cook-1") is None

    cook_list = await reservation_service.list_cook_reservations("cook-1")
    assert cook_list[0].status == ReservationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_refresh_drops_stale_cache(reservation_service, container, meal, funded_customer):
    first = await reservation_service.create_reservation(_create_dto(quantity=1))
    await reservation_service.list_cook_reservations("cook-1")

    # 模拟另一进程直接写入后缓存过期的情况
    await container.reservation_cache.set(ListScope.COOK, "cook-1", [])
    assert await reservation_service.list_cook_reservations("cook-1") == []

    refreshed = await reservation_service.refresh_reservations("cook-1", UserType.COOK)
    assert [r.id for r in refreshed] == [first.id]


@pytest.mark.asyncio
async def test_lists_are_newest_first(reservation_service, meal, funded_customer):
    older = await reservation_service.create_reservation(_create_dto(quantity=1))
    newer = await reservation_service.create_reservation(_create_dto(quantity=1))
    listed = await reservation_service.list_customer_reservations("customer-1")
    assert [r.id for r in listed] == [newer.id, older.id]
    assert await reservation_service.list_customer_reservations("someone-else") == []


@pytest.mark.asyncio
async def test_manual_refund_of_ready_reservation_allows_only_cancel(
    reservation_service, wallet_service, container, meal, funded_customer
):
    reservation = await reservation_service.create_reservation(_create_dto())
    ready = await _advance(reservation_service, reservation.id, ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP)
    await reservation_service.list_customer_reservations("customer-1")

    await wallet_service.refund_payment(ready.payment_id, "Cook ran out of rice")

    current = await reservation_service.get_reservation(reservation.id)
    assert current.status == ReservationStatus.READY_FOR_PICKUP
    assert current.payment_status == ReservationPaymentStatus.REFUNDED
    assert await container.reservation_cache.get(ListScope.CUSTOMER, "customer-1") is None
    listed = await reservation_service.list_customer_reservations("customer-1")
    assert listed[0].payment_status == ReservationPaymentStatus.REFUNDED

    with pytest.raises(InvalidReservationTransitionException) as exc_info:
        await reservation_service.update_reservation_status(reservation.id, ReservationStatus.COMPLETED)
    assert exc_info.value.details["reason"] == "payment was refunded"

    cancelled = await reservation_service.cancel_reservation(reservation.id)
    assert cancelled.status == ReservationStatus.CANCELLED
    assert cancelled.payment_status == ReservationPaymentStatus.REFUNDED

    # 只退一次
    assert (await wallet_service.get_wallet("customer-1")).balance == Decimal("100.00")
    assert (await wallet_service.get_wallet("cook-1")).pending_amount == Decimal("0.00")
    assert len(await wallet_service.get_transaction_history("customer-1")) == 2


@pytest.mark.asyncio
async def test_manual_refund_of_completed_reservation(reservation_service, wallet_service, meal, funded_customer):
    reservation = await reservation_service.create_reservation(_create_dto())
    completed = await _advance(
        reservation_service,
        reservation.id,
        ReservationStatus.CONFIRMED,
        ReservationStatus.READY_FOR_PICKUP,
        ReservationStatus.COMPLETED,
    )
    await wallet_service.refund_payment(completed.payment_id, "Meal was cold")

    current = await reservation_service.get_reservation(reservation.id)
    assert current.status == ReservationStatus.COMPLETED
    assert current.payment_status == ReservationPaymentStatus.REFUNDED
    assert (await wallet_service.get_earnings_summary("cook-1")).total_earned == Decimal("0.00")


@pytest.mark.asyncio
async def test_cook_who_also_orders_keeps_separate_counts(
    reservation_service, wallet_service, meal_service, uow_factory, meal, funded_customer
):
    await wallet_service.initialize_wallet("cook-1", Decimal("50.00"))
    await meal_service.create_meal(
        MealCreateDTO(id="meal-2", cook_id="cook-2", name="Dumplings", price=Decimal("8.00"), available_quantity=5)
    )
    statuses = (ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP, ReservationStatus.COMPLETED)

    # cook-1 先在 cook-2 那里点餐并评价
    as_customer = await reservation_service.create_reservation(
        _create_dto(customer_id="cook-1", meal_id="meal-2", quantity=1)
    )
    await _advance(reservation_service, as_customer.id, *statuses)
    await reservation_service.submit_rating(as_customer.id, RatingSubmitDTO(meal_rating=2, cook_rating=2))

    # 再作为厨师收到两次评价
    for score in (5, 4):
        own = await reservation_service.create_reservation(_create_dto(quantity=1))
        await _advance(reservation_service, own.id, *statuses)
        await reservation_service.submit_rating(own.id, RatingSubmitDTO(meal_rating=score, cook_rating=score))

    async with uow_factory(readonly=True) as uow:
        cook = await uow.user_repository.get_by_id("cook-1")
        other_cook = await uow.user_repository.get_by_id("cook-2")
    assert cook.rating == 4.5
    assert cook.rating_count == 2
    assert cook.reviews_written == 1
    assert other_cook.rating == 2.0
    assert other_cook.rating_count == 1
