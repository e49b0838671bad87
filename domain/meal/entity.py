"""
餐品领域实体 - 仅包含库存与评分两个方面
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from domain.common.exceptions import DomainValidationException
from domain.common.money import ZERO, round_currency


@dataclass
class Meal:
    """餐品实体"""

    id: str
    cook_id: str
    name: str
    price: Decimal
    available_quantity: int
    rating: Optional[float] = None
    review_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.price = round_currency(self.price)
        if self.price <= ZERO:
            raise DomainValidationException(f"餐品价格必须大于0: {self.price}", field="price")
        if self.available_quantity < 0:
            raise DomainValidationException(
                f"可售数量不能为负: {self.available_quantity}",
                field="available_quantity",
            )

    def has_available(self, quantity: int) -> bool:
        return quantity <= self.available_quantity

    def decrease_quantity(self, amount: int) -> int:
        """业务规则：扣减库存，最低为0；返回扣减前的数量"""
        previous = self.available_quantity
        self.available_quantity = max(0, previous - amount)
        self.updated_at = datetime.now(timezone.utc)
        return previous

    def change_price(self, price: Decimal) -> None:
        """改价只影响之后的预订，已生成预订的总价保持不变"""
        price = round_currency(price)
        if price <= ZERO:
            raise DomainValidationException(f"餐品价格必须大于0: {price}", field="price")
        self.price = price
        self.updated_at = datetime.now(timezone.utc)

    def add_rating(self, new_rating: float) -> None:
        """业务规则：滚动平均，保留一位小数"""
        count = self.review_count or 0
        current = self.rating or 0.0
        new_count = count + 1
        average = new_rating if count == 0 else (current * count + new_rating) / new_count
        self.rating = round(average, 1)
        self.review_count = new_count
        self.updated_at = datetime.now(timezone.utc)
