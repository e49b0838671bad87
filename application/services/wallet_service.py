"""
钱包应用服务 - 编排账本领域服务与事务边界
"""
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Callable, List, Optional, Tuple

from application.dtos.wallets import (
    EarningsSummaryDTO,
    TransactionResponseDTO,
    WalletResponseDTO,
)
from application.ports.cache import ListScope, ReservationListCache
from application.ports.locks import LockManager, reservation_lock_key
from core.config import WalletSettings, settings
from core.logging_config import get_logger
from domain.common.exceptions import TransactionNotFoundException
from domain.common.money import ZERO, Amount, round_currency
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.reservation.entity import Reservation
from domain.wallet.entity import LedgerTransaction
from domain.wallet.service import LedgerDomainService


logger = get_logger(__name__)


class WalletApplicationService:
    """钱包应用服务

    每个方法一个 Unit of Work：钱包字段与流水要么一起提交，要么一起回滚。
    """

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        wallet_settings: Optional[WalletSettings] = None,
        lock_manager: Optional[LockManager] = None,
        reservation_cache: Optional[ReservationListCache] = None,
    ):
        self._uow_factory = uow_factory
        self._settings = wallet_settings or settings.wallet
        self._lock_manager = lock_manager
        self._reservation_cache = reservation_cache

    async def initialize_wallet(self, user_id: str, initial_balance: Optional[Amount] = None) -> WalletResponseDTO:
        """幂等初始化：已存在则原样返回"""
        balance = self._settings.default_initial_balance if initial_balance is None else initial_balance
        async with self._uow_factory() as uow:
            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            wallet = await ledger.ensure_wallet(user_id, round_currency(balance))
        return WalletResponseDTO.model_validate(wallet)

    async def get_wallet(self, user_id: str) -> WalletResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            wallet = await ledger.get_wallet(user_id)
        return WalletResponseDTO.model_validate(wallet)

    async def process_payment(
        self,
        *,
        from_user_id: str,
        to_user_id: str,
        amount: Amount,
        reservation_id: Optional[str],
        description: str,
        idempotency_key: Optional[str] = None,
    ) -> TransactionResponseDTO:
        async with self._uow_factory() as uow:
            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            transaction = await ledger.process_payment(
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                amount=amount,
                reservation_id=reservation_id,
                description=description,
                idempotency_key=idempotency_key,
            )
        logger.info(
            "payment_processed",
            transaction_id=transaction.id,
            reservation_id=reservation_id,
            amount=str(transaction.amount),
        )
        return TransactionResponseDTO.model_validate(transaction)

    async def complete_payment(self, transaction_id: str) -> TransactionResponseDTO:
        async with self._uow_factory() as uow:
            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            transaction = await ledger.complete_payment(transaction_id)
        logger.info("payment_completed", transaction_id=transaction.id, amount=str(transaction.amount))
        return TransactionResponseDTO.model_validate(transaction)

    async def refund_payment(self, transaction_id: str, reason: str) -> TransactionResponseDTO:
        """退款；返回新生成的退款流水

        关联预订的支付在同一个 Unit of Work 内把预订标记为 refunded，
        并持有该预订的锁，避免与状态变更交错。
        """
        async with self._uow_factory(readonly=True) as uow:
            original = await uow.transaction_repository.get_by_id(transaction_id)
        if original is None:
            raise TransactionNotFoundException(transaction_id)

        async with self._reservation_lock(original.reservation_id):
            refund, reservation = await self._refund(transaction_id, reason)

        logger.info(
            "payment_refunded",
            transaction_id=transaction_id,
            refund_id=refund.id,
            reservation_id=refund.reservation_id,
            amount=str(refund.amount),
        )
        if reservation is not None:
            await self._invalidate_reservation_lists(reservation)
        return TransactionResponseDTO.model_validate(refund)

    async def _refund(self, transaction_id: str, reason: str) -> Tuple[LedgerTransaction, Optional[Reservation]]:
        async with self._uow_factory() as uow:
            ledger = LedgerDomainService(uow.wallet_repository, uow.transaction_repository)
            refund = await ledger.refund_payment(transaction_id, reason)
            if not refund.reservation_id:
                return refund, None

            reservation = await uow.reservation_repository.get_by_id(refund.reservation_id, for_update=True)
            if reservation is None or reservation.payment_id != transaction_id:
                logger.warning(
                    "refund_reservation_not_linked",
                    transaction_id=transaction_id,
                    reservation_id=refund.reservation_id,
                )
                return refund, None
            if not reservation.is_payment_refunded():
                reservation.mark_refunded()
                reservation = await uow.reservation_repository.update(reservation)
        return refund, reservation

    @asynccontextmanager
    async def _reservation_lock(self, reservation_id: Optional[str]) -> AsyncIterator[None]:
        if not reservation_id or self._lock_manager is None:
            yield
            return
        async with self._lock_manager.acquire(reservation_lock_key(reservation_id)):
            yield

    async def _invalidate_reservation_lists(self, reservation: Reservation) -> None:
        if self._reservation_cache is None:
            return
        for scope, user_id in (
            (ListScope.CUSTOMER, reservation.customer_id),
            (ListScope.COOK, reservation.cook_id),
        ):
            try:
                await self._reservation_cache.invalidate(scope, user_id)
            except Exception as exc:
                logger.warning(
                    "reservation_cache_invalidate_failed",
                    scope=scope.value,
                    user_id=user_id,
                    error=str(exc),
                )

    async def get_transaction_history(self, user_id: str) -> List[TransactionResponseDTO]:
        async with self._uow_factory(readonly=True) as uow:
            transactions = await uow.transaction_repository.list_by_user(user_id)
        return [TransactionResponseDTO.model_validate(t) for t in transactions]

    async def get_earnings_summary(self, cook_id: str) -> EarningsSummaryDTO:
        """厨师收入汇总；钱包不存在时全部为0"""
        async with self._uow_factory(readonly=True) as uow:
            wallet = await uow.wallet_repository.get(cook_id)
        if wallet is None:
            return EarningsSummaryDTO(total_earned=ZERO, pending_earnings=ZERO, available_balance=ZERO)
        return EarningsSummaryDTO(
            total_earned=wallet.total_earned,
            pending_earnings=wallet.pending_amount,
            available_balance=wallet.balance,
        )

    @staticmethod
    def round_currency(amount: Amount) -> Decimal:
        return round_currency(amount)
