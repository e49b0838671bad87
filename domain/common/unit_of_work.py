"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.meal.repository import MealRepository
from domain.outbox.repository import OutboxRepository
from domain.reservation.repository import ReservationRepository
from domain.user.repository import UserProfileRepository
from domain.wallet.repository import TransactionRepository, WalletRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象

    预订状态变更、账本记账、库存扣减与 outbox 写入共享同一事务。
    """

    reservation_repository: ReservationRepository
    meal_repository: MealRepository
    user_repository: UserProfileRepository
    wallet_repository: WalletRepository
    transaction_repository: TransactionRepository
    outbox_repository: OutboxRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
