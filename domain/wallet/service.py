"""
钱包领域服务 - 账本记账规则

支付/完成/退款三类操作都在调用方的 Unit of Work 内完成，
资金变动与流水写入要么一起提交，要么一起回滚。
"""
from __future__ import annotations

import hashlib
from decimal import Decimal
from typing import Optional

from domain.common.exceptions import (
    DomainValidationException,
    IdempotencyConflictException,
    InsufficientFundsException,
    RecipientWalletNotFoundException,
    TransactionNotFoundException,
    WalletNotFoundException,
)
from domain.common.money import ZERO, Amount, round_currency, to_cents
from .entity import LedgerTransaction, TransactionStatus, Wallet
from .repository import TransactionRepository, WalletRepository


def payment_idempotency_key(
    reservation_id: str,
    from_user_id: str,
    to_user_id: str,
    amount: Decimal,
) -> str:
    """由预订推导稳定幂等键（不含时间戳，重复提交得到同一键）

    只对预订支付推导：同一预订只应付款一次。非预订支付没有天然的业务标识，
    必须由调用方提供幂等键。
    """
    base = f"payment|{reservation_id}|{from_user_id}|{to_user_id}|{to_cents(amount)}"
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


def _ensure_replay_matches(
    existing: LedgerTransaction,
    key: str,
    *,
    from_user_id: str,
    to_user_id: str,
    amount: Decimal,
    reservation_id: Optional[str],
) -> None:
    """重复提交只能原样重放：参数不同或原支付已退款都视为冲突"""
    if (
        existing.from_user_id != from_user_id
        or existing.to_user_id != to_user_id
        or existing.amount != amount
        or existing.reservation_id != reservation_id
    ):
        raise IdempotencyConflictException(key, existing.id, "payment parameters differ")
    if existing.status == TransactionStatus.FAILED:
        raise IdempotencyConflictException(key, existing.id, "payment was refunded")


class LedgerDomainService:
    """
    账本领域服务

    职责：
    1. 钱包懒初始化（幂等）
    2. 支付：付款方扣款，收款方在途
    3. 完成：在途转余额
    4. 退款：生成配对退款流水，原流水置为 failed
    """

    def __init__(
        self,
        wallet_repository: WalletRepository,
        transaction_repository: TransactionRepository,
    ):
        self.wallet_repository = wallet_repository
        self.transaction_repository = transaction_repository

    async def ensure_wallet(self, user_id: str, initial_balance: Amount = ZERO) -> Wallet:
        existing = await self.wallet_repository.get(user_id)
        if existing is not None:
            return existing
        return await self.wallet_repository.create(
            Wallet(user_id=user_id, balance=round_currency(initial_balance))
        )

    async def get_wallet(self, user_id: str) -> Wallet:
        wallet = await self.wallet_repository.get(user_id)
        if wallet is None:
            raise WalletNotFoundException(user_id)
        return wallet

    async def process_payment(
        self,
        *,
        from_user_id: str,
        to_user_id: str,
        amount: Amount,
        reservation_id: Optional[str],
        description: str,
        idempotency_key: Optional[str] = None,
    ) -> LedgerTransaction:
        amount = round_currency(amount)
        if amount <= ZERO:
            raise DomainValidationException(f"支付金额必须大于0: {amount}", field="amount")
        if from_user_id == to_user_id:
            raise DomainValidationException("付款方与收款方不能相同", field="to_user_id")

        if idempotency_key:
            key = idempotency_key
        elif reservation_id:
            key = payment_idempotency_key(reservation_id, from_user_id, to_user_id, amount)
        else:
            raise DomainValidationException("非预订支付必须提供 idempotency_key", field="idempotency_key")

        existing = await self.transaction_repository.get_by_idempotency_key(key)
        if existing is not None:
            _ensure_replay_matches(
                existing,
                key,
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                amount=amount,
                reservation_id=reservation_id,
            )
            return existing

        payer = await self.wallet_repository.get(from_user_id, for_update=True)
        if payer is None or not payer.can_afford(amount):
            raise InsufficientFundsException(from_user_id, amount, payer.balance if payer else None)
        recipient = await self.wallet_repository.get(to_user_id, for_update=True)
        if recipient is None:
            raise RecipientWalletNotFoundException(to_user_id)

        payer.debit_for_payment(amount)
        recipient.hold_incoming(amount)
        transaction = LedgerTransaction.payment(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            reservation_id=reservation_id,
            description=description,
            idempotency_key=key,
        )
        await self.wallet_repository.update(payer)
        await self.wallet_repository.update(recipient)
        return await self.transaction_repository.add(transaction)

    async def complete_payment(self, transaction_id: str) -> LedgerTransaction:
        transaction = await self._get_transaction(transaction_id)
        transaction.mark_completed()

        recipient = await self.wallet_repository.get(transaction.to_user_id, for_update=True)
        if recipient is None:
            raise RecipientWalletNotFoundException(transaction.to_user_id)
        recipient.release_incoming(transaction.amount)
        await self.wallet_repository.update(recipient)
        return await self.transaction_repository.update(transaction)

    async def refund_payment(self, transaction_id: str, reason: str) -> LedgerTransaction:
        original = await self._get_transaction(transaction_id)
        was_pending = original.status == TransactionStatus.PENDING
        original.mark_refunded()

        payer = await self.wallet_repository.get(original.from_user_id, for_update=True)
        if payer is None:
            raise WalletNotFoundException(original.from_user_id)
        recipient = await self.wallet_repository.get(original.to_user_id, for_update=True)
        if recipient is None:
            raise RecipientWalletNotFoundException(original.to_user_id)

        payer.receive_refund(original.amount)
        if was_pending:
            recipient.reverse_pending(original.amount)
        else:
            recipient.reverse_earned(original.amount)

        refund = original.refund_entry(reason)
        await self.wallet_repository.update(payer)
        await self.wallet_repository.update(recipient)
        await self.transaction_repository.update(original)
        return await self.transaction_repository.add(refund)

    async def _get_transaction(self, transaction_id: str) -> LedgerTransaction:
        transaction = await self.transaction_repository.get_by_id(transaction_id, for_update=True)
        if transaction is None:
            raise TransactionNotFoundException(transaction_id)
        return transaction
