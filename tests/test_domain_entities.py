from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.common.exceptions import (
    DomainValidationException,
    InsufficientFundsException,
    InvalidReservationTransitionException,
    InvalidTransactionStateException,
    ReservationAlreadyRatedException,
)
from domain.meal.entity import Meal
from domain.outbox.entity import OutboxMessage, OutboxStatus
from domain.reservation.entity import Reservation, ReservationRating, ReservationStatus
from domain.user.entity import UserProfile, UserType
from domain.wallet.entity import LedgerTransaction, TransactionStatus, TransactionType, Wallet


def _reservation(**overrides) -> Reservation:
    params = dict(
        meal_id="meal-1",
        customer_id="customer-1",
        cook_id="cook-1",
        quantity=2,
        unit_price=Decimal("12.50"),
        pickup_time=datetime.now(timezone.utc) + timedelta(hours=2),
    )
    params.update(overrides)
    return Reservation.place(**params)


def test_place_freezes_total_price():
    reservation = _reservation(unit_price=Decimal("3.335"), quantity=3)
    assert reservation.unit_price == Decimal("3.34")
    assert reservation.total_price == Decimal("10.02")
    assert reservation.status == ReservationStatus.PENDING
    assert reservation.id.startswith("reservation-")


def test_place_rejects_non_positive_quantity():
    with pytest.raises(DomainValidationException):
        _reservation(quantity=0)


@pytest.mark.parametrize(
    "path",
    [
        [ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP, ReservationStatus.COMPLETED],
        [ReservationStatus.CANCELLED],
        [ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED],
    ],
)
def test_allowed_paths(path):
    reservation = _reservation()
    for status in path:
        reservation.transition_to(status)
    assert reservation.status == path[-1]
    assert reservation.is_terminal() == (path[-1] in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED))


@pytest.mark.parametrize(
    "path, target",
    [
        ([], ReservationStatus.COMPLETED),
        ([], ReservationStatus.READY_FOR_PICKUP),
        ([ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP], ReservationStatus.CANCELLED),
        ([ReservationStatus.CANCELLED], ReservationStatus.CONFIRMED),
        (
            [ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP, ReservationStatus.COMPLETED],
            ReservationStatus.CANCELLED,
        ),
    ],
)
def test_rejected_transitions_leave_status_untouched(path, target):
    reservation = _reservation()
    for status in path:
        reservation.transition_to(status)
    before = reservation.status
    with pytest.raises(InvalidReservationTransitionException):
        reservation.transition_to(target)
    assert reservation.status == before


def test_rating_bounds():
    with pytest.raises(DomainValidationException):
        ReservationRating(meal_rating=0, cook_rating=3, customer_id="customer-1")
    with pytest.raises(DomainValidationException):
        ReservationRating(meal_rating=3, cook_rating=6, customer_id="customer-1")


def test_attach_rating_only_once_and_only_when_completed():
    reservation = _reservation()
    rating = ReservationRating(meal_rating=5, cook_rating=4, customer_id="customer-1")
    with pytest.raises(InvalidReservationTransitionException):
        reservation.attach_rating(rating)

    for status in (ReservationStatus.CONFIRMED, ReservationStatus.READY_FOR_PICKUP, ReservationStatus.COMPLETED):
        reservation.transition_to(status)
    reservation.attach_rating(rating)
    with pytest.raises(ReservationAlreadyRatedException):
        reservation.attach_rating(rating)


def test_rating_dict_round_trip_keeps_timestamp():
    rating = ReservationRating(meal_rating=4, cook_rating=5, customer_id="customer-1", review_text="tasty")
    restored = ReservationRating.from_dict(rating.to_dict())
    assert restored.created_at == rating.created_at
    assert restored.review_text == "tasty"


def test_meal_rolling_average_and_quantity_floor():
    meal = Meal(id="meal-1", cook_id="cook-1", name="Dumplings", price=Decimal("8"), available_quantity=3)
    meal.add_rating(5)
    meal.add_rating(4)
    meal.add_rating(4)
    assert meal.rating == 4.3
    assert meal.review_count == 3

    assert meal.decrease_quantity(5) == 3
    assert meal.available_quantity == 0


def test_meal_price_must_be_positive():
    with pytest.raises(DomainValidationException):
        Meal(id="meal-1", cook_id="cook-1", name="Dumplings", price=Decimal("0"), available_quantity=1)


def test_cook_weighted_average():
    cook = UserProfile(id="cook-1", user_type=UserType.COOK, rating=4.0, rating_count=3)
    cook.record_cook_rating(5)
    assert cook.rating == 4.2
    assert cook.rating_count == 4
    assert cook.reviews_written == 0


def test_reviews_written_do_not_skew_cook_average():
    # 既做饭又点餐的用户
    user = UserProfile(id="user-1", user_type=UserType.COOK)
    user.increment_review_count()
    user.increment_review_count()
    user.record_cook_rating(4)
    assert user.rating == 4.0
    assert user.rating_count == 1
    assert user.reviews_written == 2

    user.record_cook_rating(2)
    assert user.rating == 3.0


def test_wallet_debit_checks_balance():
    wallet = Wallet(user_id="customer-1", balance=Decimal("30.00"))
    with pytest.raises(InsufficientFundsException):
        wallet.debit_for_payment(Decimal("50.00"))
    assert wallet.balance == Decimal("30.00")
    assert wallet.total_spent == Decimal("0.00")


def test_refund_reversal_floors_cumulative_totals():
    wallet = Wallet(user_id="cook-1", balance=Decimal("5.00"), total_earned=Decimal("5.00"))
    wallet.reverse_earned(Decimal("20.00"))
    assert wallet.balance == Decimal("-15.00")
    assert wallet.total_earned == Decimal("0.00")


def test_transaction_state_rules():
    txn = LedgerTransaction.payment(
        from_user_id="customer-1",
        to_user_id="cook-1",
        amount=Decimal("25"),
        reservation_id="reservation-1",
        description="Payment",
    )
    assert txn.status == TransactionStatus.PENDING
    txn.mark_completed()
    with pytest.raises(InvalidTransactionStateException):
        txn.mark_completed()

    refund = txn.refund_entry("changed my mind")
    txn.mark_refunded()
    assert txn.status == TransactionStatus.FAILED
    assert refund.type == TransactionType.REFUND
    assert refund.status == TransactionStatus.COMPLETED
    assert (refund.from_user_id, refund.to_user_id) == ("cook-1", "customer-1")
    with pytest.raises(InvalidTransactionStateException):
        refund.mark_refunded()


def test_transaction_amount_must_be_positive():
    with pytest.raises(DomainValidationException):
        LedgerTransaction.payment(
            from_user_id="customer-1",
            to_user_id="cook-1",
            amount=Decimal("0.004"),
            reservation_id=None,
            description="",
        )


def test_outbox_backoff_then_dead():
    message = OutboxMessage(topic="order_notification", payload={})
    before = datetime.now(timezone.utc)
    message.mark_failed("boom", max_attempts=3, base_backoff_seconds=10)
    assert message.status == OutboxStatus.PENDING
    assert message.next_attempt_at >= before + timedelta(seconds=10)

    message.mark_failed("boom", max_attempts=3, base_backoff_seconds=10)
    assert message.next_attempt_at >= before + timedelta(seconds=20)

    message.mark_failed("boom", max_attempts=3, base_backoff_seconds=10)
    assert message.status == OutboxStatus.DEAD
    assert message.attempts == 3
