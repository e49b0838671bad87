"""
钱包与账本流水仓储实现
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import TransactionNotFoundException, WalletNotFoundException
from domain.wallet.entity import (
    LedgerTransaction,
    TransactionStatus,
    TransactionType,
    Wallet,
)
from domain.wallet.repository import TransactionRepository, WalletRepository
from infrastructure.models.wallet import WalletModel, WalletTransactionModel


logger = get_logger(__name__)


class SQLAlchemyWalletRepository(WalletRepository):
    """钱包仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: WalletModel) -> Wallet:
        return Wallet(
            user_id=model.user_id,
            balance=Decimal(str(model.balance)),
            pending_amount=Decimal(str(model.pending_amount)),
            total_earned=Decimal(str(model.total_earned)),
            total_spent=Decimal(str(model.total_spent)),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Wallet) -> WalletModel:
        return WalletModel(
            user_id=entity.user_id,
            balance=entity.balance,
            pending_amount=entity.pending_amount,
            total_earned=entity.total_earned,
            total_spent=entity.total_spent,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _get_model(self, user_id: str, *, for_update: bool = False) -> Optional[WalletModel]:
        query = select(WalletModel).where(WalletModel.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get(self, user_id: str, *, for_update: bool = False) -> Optional[Wallet]:
        db_wallet = await self._get_model(user_id, for_update=for_update)
        return self._to_entity(db_wallet) if db_wallet else None

    async def create(self, wallet: Wallet) -> Wallet:
        db_wallet = self._to_model(wallet)
        self.session.add(db_wallet)
        await self.session.flush()
        await self.session.refresh(db_wallet)
        logger.info("wallet_created", user_id=db_wallet.user_id, balance=str(db_wallet.balance))
        return self._to_entity(db_wallet)

    async def update(self, wallet: Wallet) -> Wallet:
        db_wallet = await self._get_model(wallet.user_id)
        if not db_wallet:
            raise WalletNotFoundException(wallet.user_id)

        db_wallet.balance = wallet.balance
        db_wallet.pending_amount = wallet.pending_amount
        db_wallet.total_earned = wallet.total_earned
        db_wallet.total_spent = wallet.total_spent
        if wallet.updated_at is not None:
            db_wallet.updated_at = wallet.updated_at

        await self.session.flush()
        return self._to_entity(db_wallet)


class SQLAlchemyTransactionRepository(TransactionRepository):
    """账本流水仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: WalletTransactionModel) -> LedgerTransaction:
        return LedgerTransaction(
            id=model.id,
            from_user_id=model.from_user_id,
            to_user_id=model.to_user_id,
            amount=Decimal(str(model.amount)),
            type=TransactionType(model.type),
            status=TransactionStatus(model.status),
            reservation_id=model.reservation_id,
            description=model.description or "",
            created_at=model.created_at,
            completed_at=model.completed_at,
            idempotency_key=model.idempotency_key,
            refund_of_id=model.refund_of_id,
        )

    def _to_model(self, entity: LedgerTransaction) -> WalletTransactionModel:
        return WalletTransactionModel(
            id=entity.id,
            from_user_id=entity.from_user_id,
            to_user_id=entity.to_user_id,
            amount=entity.amount,
            type=entity.type.value,
            status=entity.status.value,
            reservation_id=entity.reservation_id,
            description=entity.description,
            created_at=entity.created_at,
            completed_at=entity.completed_at,
            idempotency_key=entity.idempotency_key,
            refund_of_id=entity.refund_of_id,
        )

    async def _get_model(self, transaction_id: str, *, for_update: bool = False) -> Optional[WalletTransactionModel]:
        query = select(WalletTransactionModel).where(WalletTransactionModel.id == transaction_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def add(self, transaction: LedgerTransaction) -> LedgerTransaction:
        try:
            db_txn = self._to_model(transaction)
            self.session.add(db_txn)
            await self.session.flush()
        except IntegrityError:
            logger.warning(
                "transaction_add_conflict",
                transaction_id=transaction.id,
                idempotency_key=transaction.idempotency_key,
            )
            raise
        logger.info(
            "transaction_added",
            transaction_id=db_txn.id,
            type=db_txn.type,
            status=db_txn.status,
            amount=str(db_txn.amount),
        )
        return self._to_entity(db_txn)

    async def get_by_id(self, transaction_id: str, *, for_update: bool = False) -> Optional[LedgerTransaction]:
        db_txn = await self._get_model(transaction_id, for_update=for_update)
        return self._to_entity(db_txn) if db_txn else None

    async def get_by_idempotency_key(self, key: str) -> Optional[LedgerTransaction]:
        result = await self.session.execute(
            select(WalletTransactionModel).where(WalletTransactionModel.idempotency_key == key)
        )
        db_txn = result.scalar_one_or_none()
        return self._to_entity(db_txn) if db_txn else None

    async def update(self, transaction: LedgerTransaction) -> LedgerTransaction:
        """只回写状态与完成时间，金额与参与方不可变"""
        db_txn = await self._get_model(transaction.id)
        if not db_txn:
            raise TransactionNotFoundException(transaction.id)

        db_txn.status = transaction.status.value
        db_txn.completed_at = transaction.completed_at

        await self.session.flush()
        return self._to_entity(db_txn)

    async def list_by_user(self, user_id: str) -> List[LedgerTransaction]:
        query = (
            select(WalletTransactionModel)
            .where(
                or_(
                    WalletTransactionModel.from_user_id == user_id,
                    WalletTransactionModel.to_user_id == user_id,
                )
            )
            .order_by(WalletTransactionModel.created_at.desc(), WalletTransactionModel.id.desc())
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]
