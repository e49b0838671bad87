"""
预订领域实体 - 预订聚合根与状态机
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid

from domain.common.exceptions import (
    DomainValidationException,
    InvalidReservationTransitionException,
    ReservationAlreadyRatedException,
)
from domain.common.money import round_currency


class ReservationStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "pending"                    # 待厨师确认
    CONFIRMED = "confirmed"                # 已确认，制作中
    READY_FOR_PICKUP = "ready_for_pickup"  # 待取餐（此时发起支付）
    COMPLETED = "completed"                # 已完成（支付入账）
    CANCELLED = "cancelled"                # 已取消


class ReservationPaymentStatus(str, Enum):
    """预订上的支付状态快照"""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.READY_FOR_PICKUP, ReservationStatus.CANCELLED}),
    ReservationStatus.READY_FOR_PICKUP: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}

MIN_RATING = 1
MAX_RATING = 5


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def new_reservation_id() -> str:
    return f"reservation-{uuid.uuid4().hex}"


@dataclass
class ReservationRating:
    """预订评价（完成后只能提交一次）"""

    meal_rating: int
    cook_rating: int
    customer_id: str
    review_text: str = ""
    customer_name: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        for name in ("meal_rating", "cook_rating"):
            value = getattr(self, name)
            if not MIN_RATING <= value <= MAX_RATING:
                raise DomainValidationException(
                    f"评分必须在 {MIN_RATING}-{MAX_RATING} 之间: {value}",
                    field=name,
                )
        self.created_at = _ensure_utc(self.created_at)

    def to_dict(self) -> dict:
        return {
            "meal_rating": self.meal_rating,
            "cook_rating": self.cook_rating,
            "review_text": self.review_text,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReservationRating":
        created_at = data.get("created_at")
        return cls(
            meal_rating=int(data["meal_rating"]),
            cook_rating=int(data["cook_rating"]),
            review_text=data.get("review_text") or "",
            customer_id=data["customer_id"],
            customer_name=data.get("customer_name"),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(timezone.utc),
        )


@dataclass
class Reservation:
    """
    预订聚合根 - 管理预订生命周期

    业务规则：
    1. 数量必须为正整数
    2. 总价 = 下单时单价 x 数量，创建后不可变
    3. 状态转换必须遵循状态机，completed/cancelled 为终态；
       ready_for_pickup 的款项被单独退回后只能转为 cancelled
    4. 评价只能在 completed 后提交一次
    5. 不做物理删除，取消只是状态
    """

    id: str
    meal_id: str
    customer_id: str
    cook_id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    pickup_time: datetime
    status: ReservationStatus = ReservationStatus.PENDING
    payment_id: Optional[str] = None
    payment_status: Optional[ReservationPaymentStatus] = None
    rating: Optional[ReservationRating] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise DomainValidationException(f"预订数量必须大于0: {self.quantity}", field="quantity")
        self.unit_price = round_currency(self.unit_price)
        self.total_price = round_currency(self.total_price)
        self.pickup_time = _ensure_utc(self.pickup_time)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    @classmethod
    def place(
        cls,
        *,
        meal_id: str,
        customer_id: str,
        cook_id: str,
        quantity: int,
        unit_price: Decimal,
        pickup_time: datetime,
    ) -> "Reservation":
        """下单：冻结单价与总价"""
        now = datetime.now(timezone.utc)
        unit_price = round_currency(unit_price)
        return cls(
            id=new_reservation_id(),
            meal_id=meal_id,
            customer_id=customer_id,
            cook_id=cook_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=round_currency(unit_price * quantity),
            pickup_time=pickup_time,
            status=ReservationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def is_payment_refunded(self) -> bool:
        return self.payment_status == ReservationPaymentStatus.REFUNDED

    def _ready_but_refunded(self) -> bool:
        return self.status == ReservationStatus.READY_FOR_PICKUP and self.is_payment_refunded()

    def can_transition_to(self, target: ReservationStatus) -> bool:
        # 待取餐时款项已被退回：不能再完成，只能取消
        if self._ready_but_refunded():
            return target == ReservationStatus.CANCELLED
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: ReservationStatus) -> None:
        if not self.can_transition_to(target):
            reason = "payment was refunded" if self._ready_but_refunded() else None
            raise InvalidReservationTransitionException(self.status.value, target.value, reason=reason)
        self.status = target
        self.updated_at = datetime.now(timezone.utc)

    def attach_payment(self, transaction_id: str) -> None:
        self.payment_id = transaction_id
        self.payment_status = ReservationPaymentStatus.PENDING
        self.updated_at = datetime.now(timezone.utc)

    def mark_paid(self) -> None:
        self.payment_status = ReservationPaymentStatus.PAID
        self.updated_at = datetime.now(timezone.utc)

    def mark_refunded(self) -> None:
        self.payment_status = ReservationPaymentStatus.REFUNDED
        self.updated_at = datetime.now(timezone.utc)

    def attach_rating(self, rating: ReservationRating) -> None:
        if self.rating is not None:
            raise ReservationAlreadyRatedException(self.id)
        if self.status != ReservationStatus.COMPLETED:
            raise InvalidReservationTransitionException(
                self.status.value,
                "rated",
                reason="only completed reservations can be rated",
            )
        self.rating = rating
        self.updated_at = datetime.now(timezone.utc)
