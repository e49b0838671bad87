"""
钱包与账本流水数据库模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Numeric, String, Text

from .base import Base


class WalletModel(Base):
    """钱包表（每个用户一行）"""
    __tablename__ = "wallets"

    user_id = Column(String(64), primary_key=True, comment="用户ID")
    balance = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="可用余额")
    pending_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="在途金额")
    total_earned = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="累计收入")
    total_spent = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="累计支出")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间",
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间",
    )

    def __repr__(self):
        return f"<WalletModel(user_id='{self.user_id}', balance={self.balance}, pending={self.pending_amount})>"


class WalletTransactionModel(Base):
    """账本流水表（只追加；仅原支付流水在退款时改为 failed）"""
    __tablename__ = "wallet_transactions"

    id = Column(String(64), primary_key=True, comment="流水ID")
    from_user_id = Column(String(64), nullable=False, index=True, comment="付款方")
    to_user_id = Column(String(64), nullable=False, index=True, comment="收款方")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="金额")
    type = Column(String(16), nullable=False, comment="类型: payment/refund/payout")
    status = Column(String(16), nullable=False, index=True, comment="状态: pending/completed/failed")
    reservation_id = Column(String(64), nullable=True, index=True, comment="关联预订")
    description = Column(Text, nullable=True, comment="描述")
    idempotency_key = Column(String(64), nullable=True, unique=True, comment="幂等键")
    refund_of_id = Column(String(64), nullable=True, comment="被退款的原流水ID")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间",
    )
    completed_at = Column(DateTime(timezone=True), nullable=True, comment="完成时间")

    __table_args__ = (
        Index("ix_wallet_transactions_created_at", "created_at"),
    )

    def __repr__(self):
        return (
            f"<WalletTransactionModel(id='{self.id}', type='{self.type}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
