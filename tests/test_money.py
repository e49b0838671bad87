from decimal import Decimal

import pytest

from domain.common.money import floor_at_zero, from_cents, round_currency, to_cents


def test_float_sum_is_rounded_to_cents():
    assert round_currency(0.1 + 0.2) == Decimal("0.30")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (Decimal("2.675"), Decimal("2.68")),
        (Decimal("2.665"), Decimal("2.67")),
        ("10", Decimal("10.00")),
        (7, Decimal("7.00")),
        (Decimal("-1.005"), Decimal("-1.01")),
    ],
)
def test_round_currency_half_up(raw, expected):
    assert round_currency(raw) == expected


def test_cents_conversion():
    assert to_cents(Decimal("12.50")) == 1250
    assert from_cents(2550) == Decimal("25.50")


def test_floor_at_zero():
    assert floor_at_zero(Decimal("-3.20")) == Decimal("0.00")
    assert floor_at_zero(Decimal("3.204")) == Decimal("3.20")
