"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

import inspect
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.meal_repository import SQLAlchemyMealRepository
from infrastructure.repositories.outbox_repository import SQLAlchemyOutboxRepository
from infrastructure.repositories.reservation_repository import SQLAlchemyReservationRepository
from infrastructure.repositories.user_repository import SQLAlchemyUserProfileRepository
from infrastructure.repositories.wallet_repository import (
    SQLAlchemyTransactionRepository,
    SQLAlchemyWalletRepository,
)


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """基于SQLAlchemy的Unit of Work"""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._external_session = session
        self.session: Optional[AsyncSession] = session
        self._clear_repositories()

    def _clear_repositories(self) -> None:
        self.reservation_repository = None
        self.meal_repository = None
        self.user_repository = None
        self.wallet_repository = None
        self.transaction_repository = None
        self.outbox_repository = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self.reservation_repository = SQLAlchemyReservationRepository(self.session)
        self.meal_repository = SQLAlchemyMealRepository(self.session)
        self.user_repository = SQLAlchemyUserProfileRepository(self.session)
        self.wallet_repository = SQLAlchemyWalletRepository(self.session)
        self.transaction_repository = SQLAlchemyTransactionRepository(self.session)
        self.outbox_repository = SQLAlchemyOutboxRepository(self.session)
        # 仅在非只读模式下显式开启事务
        if not self._readonly:
            self._transaction = await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            tx = getattr(self, "_transaction", None)
            if tx is not None and getattr(tx, "is_active", False):
                close = getattr(tx, "close", None)
                if callable(close):
                    res = close()
                    if inspect.isawaitable(res):
                        await res
            if self._external_session is None and self.session is not None:
                await self.session.close()
                self.session = None
            self._clear_repositories()

    async def commit(self) -> None:
        if self._readonly:
            self._committed = True
            return
        if self.session and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
