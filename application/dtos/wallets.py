"""
钱包与账本 DTO（Pydantic v2）
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from domain.wallet.entity import TransactionStatus, TransactionType
from .base import DTOBase


class WalletInitDTO(DTOBase):
    initial_balance: Optional[Decimal] = Field(None, ge=0, description="缺省使用配置的默认余额")


class WalletResponseDTO(DTOBase):
    user_id: str
    balance: Decimal
    pending_amount: Decimal
    total_earned: Decimal
    total_spent: Decimal
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class PaymentRequestDTO(DTOBase):
    from_user_id: str
    to_user_id: str
    amount: Decimal = Field(..., gt=0)
    reservation_id: Optional[str] = None
    description: str = ""
    idempotency_key: Optional[str] = Field(None, max_length=64)


class RefundRequestDTO(DTOBase):
    reason: str = Field("Refund requested", min_length=1, max_length=500)


class TransactionResponseDTO(DTOBase):
    id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    type: TransactionType
    status: TransactionStatus
    reservation_id: Optional[str]
    description: str
    created_at: datetime
    completed_at: Optional[datetime]
    refund_of_id: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class EarningsSummaryDTO(DTOBase):
    total_earned: Decimal
    pending_earnings: Decimal
    available_balance: Decimal
