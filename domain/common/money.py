"""
金额工具 - 统一使用 Decimal 定点运算，保留两位小数（四舍五入）
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Amount = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round_currency(amount: Amount) -> Decimal:
    """将金额规范化为两位小数

    float 先经 str() 转换，避免二进制表示误差进入账本（0.1 + 0.2 -> 0.30）。
    """
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, float):
        value = Decimal(str(amount))
    else:
        value = Decimal(amount)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Amount) -> int:
    """金额转为整数分"""
    return int(round_currency(amount) * 100)


def from_cents(cents: int) -> Decimal:
    """整数分转为金额"""
    return round_currency(Decimal(cents) / 100)


def floor_at_zero(amount: Amount) -> Decimal:
    """累计值不允许出现负数"""
    value = round_currency(amount)
    return value if value > ZERO else ZERO
