"""
钱包领域实体 - 钱包聚合与账本流水
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid

from domain.common.exceptions import (
    DomainValidationException,
    InsufficientFundsException,
    InvalidTransactionStateException,
)
from domain.common.money import ZERO, floor_at_zero, round_currency


class TransactionType(str, Enum):
    """流水类型"""
    PAYMENT = "payment"
    REFUND = "refund"
    PAYOUT = "payout"


class TransactionStatus(str, Enum):
    """流水状态"""
    PENDING = "pending"        # 资金在途，收款方尚不可用
    COMPLETED = "completed"    # 已入账
    FAILED = "failed"          # 已撤销（退款）


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def new_transaction_id(prefix: str = "txn") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


@dataclass
class Wallet:
    """
    钱包聚合根

    业务规则：
    1. 每个用户一个钱包，身份为 user_id
    2. 扣款前必须校验余额，付款不会使余额为负
    3. 所有金额字段在写入前统一 round_currency
    4. 累计字段（total_earned/total_spent）不低于 0
    """

    user_id: str
    balance: Decimal = ZERO
    pending_amount: Decimal = ZERO
    total_earned: Decimal = ZERO
    total_spent: Decimal = ZERO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.balance = round_currency(self.balance)
        self.pending_amount = round_currency(self.pending_amount)
        self.total_earned = round_currency(self.total_earned)
        self.total_spent = round_currency(self.total_spent)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def can_afford(self, amount: Decimal) -> bool:
        return self.balance >= round_currency(amount)

    def debit_for_payment(self, amount: Decimal) -> None:
        """付款方扣款：余额减少，累计支出增加"""
        amount = round_currency(amount)
        if not self.can_afford(amount):
            raise InsufficientFundsException(self.user_id, amount, self.balance)
        self.balance = round_currency(self.balance - amount)
        self.total_spent = round_currency(self.total_spent + amount)
        self._touch()

    def hold_incoming(self, amount: Decimal) -> None:
        """收款方在途资金增加（尚不可支配）"""
        self.pending_amount = round_currency(self.pending_amount + round_currency(amount))
        self._touch()

    def release_incoming(self, amount: Decimal) -> None:
        """在途资金转入余额，并计入累计收入"""
        amount = round_currency(amount)
        self.pending_amount = floor_at_zero(self.pending_amount - amount)
        self.balance = round_currency(self.balance + amount)
        self.total_earned = round_currency(self.total_earned + amount)
        self._touch()

    def receive_refund(self, amount: Decimal) -> None:
        """付款方收到退款"""
        amount = round_currency(amount)
        self.balance = round_currency(self.balance + amount)
        self.total_spent = floor_at_zero(self.total_spent - amount)
        self._touch()

    def reverse_pending(self, amount: Decimal) -> None:
        """撤销尚未入账的在途资金"""
        self.pending_amount = floor_at_zero(self.pending_amount - round_currency(amount))
        self._touch()

    def reverse_earned(self, amount: Decimal) -> None:
        """撤销已入账收入（退款已完成的支付）"""
        amount = round_currency(amount)
        self.balance = round_currency(self.balance - amount)
        self.total_earned = floor_at_zero(self.total_earned - amount)
        self._touch()


@dataclass
class LedgerTransaction:
    """
    账本流水

    业务规则：
    1. 金额必须大于0，写入前两位小数四舍五入
    2. pending -> completed（完成支付）
    3. pending/completed -> failed（退款，同时生成一条 refund 流水）
    4. 退款流水创建即为 completed，之后不可修改
    """

    id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    type: TransactionType
    status: TransactionStatus
    reservation_id: Optional[str]
    description: str = ""
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    idempotency_key: Optional[str] = None
    refund_of_id: Optional[str] = None

    def __post_init__(self):
        self.amount = round_currency(self.amount)
        if self.amount <= ZERO:
            raise DomainValidationException(
                f"流水金额必须大于0: {self.amount}",
                field="amount",
            )
        self.created_at = _ensure_utc(self.created_at) or datetime.now(timezone.utc)
        self.completed_at = _ensure_utc(self.completed_at)

    @classmethod
    def payment(
        cls,
        *,
        from_user_id: str,
        to_user_id: str,
        amount: Decimal,
        reservation_id: Optional[str],
        description: str,
        idempotency_key: Optional[str] = None,
    ) -> "LedgerTransaction":
        return cls(
            id=new_transaction_id("txn"),
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            type=TransactionType.PAYMENT,
            status=TransactionStatus.PENDING,
            reservation_id=reservation_id,
            description=description,
            idempotency_key=idempotency_key,
        )

    def refund_entry(self, reason: str) -> "LedgerTransaction":
        """生成与原支付配对的退款流水（方向相反）"""
        now = datetime.now(timezone.utc)
        return LedgerTransaction(
            id=new_transaction_id("refund"),
            from_user_id=self.to_user_id,
            to_user_id=self.from_user_id,
            amount=self.amount,
            type=TransactionType.REFUND,
            status=TransactionStatus.COMPLETED,
            reservation_id=self.reservation_id,
            description=f"Refund: {reason}",
            created_at=now,
            completed_at=now,
            refund_of_id=self.id,
        )

    def mark_completed(self) -> None:
        if self.status != TransactionStatus.PENDING:
            raise InvalidTransactionStateException(self.id, self.status.value, "complete")
        self.status = TransactionStatus.COMPLETED
        self.completed_at = datetime.now(timezone.utc)

    def mark_refunded(self) -> None:
        if self.type != TransactionType.PAYMENT or self.status == TransactionStatus.FAILED:
            raise InvalidTransactionStateException(self.id, self.status.value, "refund")
        self.status = TransactionStatus.FAILED
