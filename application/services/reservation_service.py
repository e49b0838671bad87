"""
预订应用服务 - 状态机编排、账本副作用、通知 outbox 与列表缓存

失败策略：
1. 状态变更与其必需的资金动作（支付/完成/退款）在同一个 Unit of Work 内，
   要么一起成功，要么一起回滚
2. 通知写入 outbox（与状态同事务），投递失败不影响状态
3. 缓存失效与 relay 触发在提交之后执行，失败只记录日志
"""
from typing import Callable, List, Optional

from application.dtos.reservations import (
    RatingSubmitDTO,
    ReservationCreateDTO,
    ReservationResponseDTO,
)
from application.ports.cache import ListScope, ReservationListCache
from application.ports.locks import LockManager, reservation_lock_key
from application.ports.notifications import RelayTrigger
from core.config import WalletSettings, settings
from core.logging_config import get_logger
from domain.common.exceptions import (
    DomainValidationException,
    InsufficientMealQuantityException,
    InvalidTransactionStateException,
    MealNotFoundException,
    ReservationNotFoundException,
    TransactionNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.outbox.entity import OutboxMessage
from domain.reservation.entity import (
    Reservation,
    ReservationPaymentStatus,
    ReservationRating,
    ReservationStatus,
)
from domain.reservation.events import Audience, NotificationKind, OrderNotificationRequested
from domain.user.entity import UserProfile, UserType
from domain.wallet.entity import TransactionStatus
from domain.wallet.service import LedgerDomainService


logger = get_logger(__name__)

CANCELLATION_REFUND_REASON = "Reservation cancelled"


class ReservationApplicationService:
    """预订应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        lock_manager: LockManager,
        cache: ReservationListCache,
        relay_trigger: Optional[RelayTrigger] = None,
        wallet_settings: Optional[WalletSettings] = None,
    ):
        self._uow_factory = uow_factory
        self._lock_manager = lock_manager
        self._cache = cache
        self._relay_trigger = relay_trigger
        self._wallet_settings = wallet_settings or settings.wallet

    # ------------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------------
    async def create_reservation(self, data: ReservationCreateDTO) -> ReservationResponseDTO:
        """下单：冻结总价、立即扣减库存、通知厨师"""
        async with self._uow_factory() as uow:
            meal = await uow.meal_repository.get_by_id(data.meal_id, for_update=True)
            if meal is None:
                raise MealNotFoundException(data.meal_id)
            if data.cook_id and data.cook_id != meal.cook_id:
                raise DomainValidationException("cook_id 与餐品所属厨师不一致", field="cook_id")
            if data.customer_id == meal.cook_id:
                raise DomainValidationException("厨师不能预订自己的餐品", field="customer_id")
            if not meal.has_available(data.quantity):
                raise InsufficientMealQuantityException(meal.id, data.quantity, meal.available_quantity)

            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            initial_balance = self._wallet_settings.default_initial_balance
            await ledger.ensure_wallet(data.customer_id, initial_balance)
            await ledger.ensure_wallet(meal.cook_id, initial_balance)
            await self._ensure_profile(uow, data.customer_id, UserType.CUSTOMER)
            await self._ensure_profile(uow, meal.cook_id, UserType.COOK)

            reservation = Reservation.place(
                meal_id=meal.id,
                customer_id=data.customer_id,
                cook_id=meal.cook_id,
                quantity=data.quantity,
                unit_price=meal.price,
                pickup_time=data.pickup_time,
            )
            reservation = await uow.reservation_repository.insert(reservation)

            meal.decrease_quantity(data.quantity)
            await uow.meal_repository.update(meal)

            await self._enqueue_notification(uow, NotificationKind.RESERVED, reservation, Audience.COOK)

        logger.info(
            "reservation_created",
            reservation_id=reservation.id,
            meal_id=reservation.meal_id,
            quantity=reservation.quantity,
            total_price=str(reservation.total_price),
        )
        await self._after_commit(reservation)
        return self._to_response_dto(reservation)

    async def update_reservation_status(self, reservation_id: str, new_status: ReservationStatus) -> ReservationResponseDTO:
        """按状态机推进预订；同一预订的并发变更串行执行"""
        target = ReservationStatus(new_status)
        async with self._lock_manager.acquire(reservation_lock_key(reservation_id)):
            async with self._uow_factory() as uow:
                reservation = await self._get_for_update(uow, reservation_id)
                if reservation.status == target:
                    logger.info("reservation_status_unchanged", reservation_id=reservation_id, status=target.value)
                    return self._to_response_dto(reservation)

                previous = reservation.status
                reservation.transition_to(target)
                ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)

                if target == ReservationStatus.CONFIRMED:
                    await self._enqueue_notification(uow, NotificationKind.CONFIRMED, reservation, Audience.CUSTOMER)
                elif target == ReservationStatus.READY_FOR_PICKUP:
                    await self._charge(ledger, reservation)
                    await self._enqueue_notification(uow, NotificationKind.READY, reservation, Audience.CUSTOMER)
                elif target == ReservationStatus.COMPLETED:
                    await self._settle(uow, ledger, reservation)
                elif target == ReservationStatus.CANCELLED:
                    await self._refund_if_paid(uow, ledger, reservation)

                reservation = await uow.reservation_repository.update(reservation)

        logger.info(
            "reservation_status_updated",
            reservation_id=reservation_id,
            previous=previous.value,
            status=reservation.status.value,
            payment_status=reservation.payment_status.value if reservation.payment_status else None,
        )
        await self._after_commit(reservation)
        return self._to_response_dto(reservation)

    async def cancel_reservation(self, reservation_id: str) -> ReservationResponseDTO:
        return await self.update_reservation_status(reservation_id, ReservationStatus.CANCELLED)

    async def submit_rating(self, reservation_id: str, data: RatingSubmitDTO) -> ReservationResponseDTO:
        """提交评价并同步更新餐品、厨师与顾客的评分聚合"""
        async with self._lock_manager.acquire(reservation_lock_key(reservation_id)):
            async with self._uow_factory() as uow:
                reservation = await self._get_for_update(uow, reservation_id)
                rating = ReservationRating(
                    meal_rating=data.meal_rating,
                    cook_rating=data.cook_rating,
                    review_text=data.review_text,
                    customer_id=reservation.customer_id,
                    customer_name=data.customer_name,
                )
                reservation.attach_rating(rating)
                reservation = await uow.reservation_repository.update(reservation)

                meal = await uow.meal_repository.get_by_id(reservation.meal_id, for_update=True)
                if meal is None:
                    logger.warning("rating_meal_missing", reservation_id=reservation_id, meal_id=reservation.meal_id)
                else:
                    meal.add_rating(rating.meal_rating)
                    await uow.meal_repository.update(meal)

                cook = await self._ensure_profile(uow, reservation.cook_id, UserType.COOK)
                cook.record_cook_rating(rating.cook_rating)
                await uow.user_repository.update(cook)

                customer = await self._ensure_profile(uow, reservation.customer_id, UserType.CUSTOMER)
                customer.increment_review_count()
                await uow.user_repository.update(customer)

        logger.info(
            "reservation_rated",
            reservation_id=reservation_id,
            meal_rating=rating.meal_rating,
            cook_rating=rating.cook_rating,
        )
        await self._after_commit(reservation)
        return self._to_response_dto(reservation)

    # ------------------------------------------------------------------
    # 读操作
    # ------------------------------------------------------------------
    async def get_reservation(self, reservation_id: str) -> ReservationResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            reservation = await uow.reservation_repository.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return self._to_response_dto(reservation)

    async def list_customer_reservations(self, customer_id: str) -> List[ReservationResponseDTO]:
        return await self._list(ListScope.CUSTOMER, customer_id)

    async def list_cook_reservations(self, cook_id: str) -> List[ReservationResponseDTO]:
        return await self._list(ListScope.COOK, cook_id)

    async def refresh_reservations(self, user_id: str, user_type: UserType) -> List[ReservationResponseDTO]:
        """丢弃该用户的列表缓存并重新读取"""
        scope = ListScope.COOK if UserType(user_type) == UserType.COOK else ListScope.CUSTOMER
        await self._cache.invalidate(scope, user_id)
        return await self._list(scope, user_id)

    # ------------------------------------------------------------------
    # 内部步骤
    # ------------------------------------------------------------------
    async def _charge(self, ledger: LedgerDomainService, reservation: Reservation) -> None:
        """待取餐时向厨师付款（资金在途）；失败则整个转换回滚"""
        if reservation.payment_id:
            return
        transaction = await ledger.process_payment(
            from_user_id=reservation.customer_id,
            to_user_id=reservation.cook_id,
            amount=reservation.total_price,
            reservation_id=reservation.id,
            description=f"Payment for {reservation.quantity}x meal reservation",
        )
        reservation.attach_payment(transaction.id)

    async def _settle(self, uow: AbstractUnitOfWork, ledger: LedgerDomainService, reservation: Reservation) -> None:
        """完成时在途资金入账"""
        if not reservation.payment_id:
            return
        transaction = await uow.transaction_repository.get_by_id(reservation.payment_id)
        if transaction is None:
            raise TransactionNotFoundException(reservation.payment_id)
        if transaction.status == TransactionStatus.PENDING:
            await ledger.complete_payment(transaction.id)
        elif transaction.status == TransactionStatus.FAILED:
            raise InvalidTransactionStateException(transaction.id, transaction.status.value, "complete")
        reservation.mark_paid()

    async def _refund_if_paid(
        self,
        uow: AbstractUnitOfWork,
        ledger: LedgerDomainService,
        reservation: Reservation,
    ) -> None:
        if not reservation.payment_id or reservation.payment_status == ReservationPaymentStatus.REFUNDED:
            return
        transaction = await uow.transaction_repository.get_by_id(reservation.payment_id)
        if transaction is None:
            raise TransactionNotFoundException(reservation.payment_id)
        if transaction.status != TransactionStatus.FAILED:
            await ledger.refund_payment(transaction.id, CANCELLATION_REFUND_REASON)
        reservation.mark_refunded()

    async def _get_for_update(self, uow: AbstractUnitOfWork, reservation_id: str) -> Reservation:
        reservation = await uow.reservation_repository.get_by_id(reservation_id, for_update=True)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return reservation

    async def _ensure_profile(self, uow: AbstractUnitOfWork, user_id: str, user_type: UserType) -> UserProfile:
        profile = await uow.user_repository.get_by_id(user_id)
        if profile is not None:
            return profile
        return await uow.user_repository.create(UserProfile(id=user_id, user_type=user_type))

    async def _enqueue_notification(
        self,
        uow: AbstractUnitOfWork,
        kind: NotificationKind,
        reservation: Reservation,
        audience: Audience,
    ) -> None:
        recipient_id = reservation.cook_id if audience == Audience.COOK else reservation.customer_id
        event = OrderNotificationRequested(
            kind=kind,
            audience=audience,
            reservation_id=reservation.id,
            recipient_id=recipient_id,
            quantity=reservation.quantity,
        )
        await uow.outbox_repository.add(OutboxMessage(topic=event.topic, payload=event.to_payload()))

    async def _after_commit(self, reservation: Reservation) -> None:
        """提交后的尽力而为步骤，失败不影响已提交的结果"""
        for scope, user_id in (
            (ListScope.CUSTOMER, reservation.customer_id),
            (ListScope.COOK, reservation.cook_id),
        ):
            try:
                await self._cache.invalidate(scope, user_id)
            except Exception as exc:
                logger.warning(
                    "reservation_cache_invalidate_failed",
                    scope=scope.value,
                    user_id=user_id,
                    error=str(exc),
                )
        if self._relay_trigger is None:
            return
        try:
            await self._relay_trigger.nudge()
        except Exception as exc:
            logger.warning("outbox_relay_nudge_failed", reservation_id=reservation.id, error=str(exc))

    async def _list(self, scope: ListScope, user_id: str) -> List[ReservationResponseDTO]:
        cached = await self._cache.get(scope, user_id)
        if cached is not None:
            return [ReservationResponseDTO.model_validate(item) for item in cached]

        async with self._uow_factory(readonly=True) as uow:
            if scope == ListScope.COOK:
                reservations = await uow.reservation_repository.list_by_cook_id(user_id)
            else:
                reservations = await uow.reservation_repository.list_by_customer_id(user_id)

        items = [self._to_response_dto(r) for r in reservations]
        await self._cache.set(scope, user_id, [item.model_dump(mode="json") for item in items])
        return items

    def _to_response_dto(self, reservation: Reservation) -> ReservationResponseDTO:
        return ReservationResponseDTO.model_validate(reservation)
