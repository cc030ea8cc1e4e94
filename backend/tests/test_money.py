from decimal import Decimal

import pytest

from wallet.core.errors import InvalidAmount
from wallet.services.money import parse_money, round_money


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1000.005, Decimal("1000.01")),
        (0.015, Decimal("0.02")),
        ("12.344", Decimal("12.34")),
        (10, Decimal("10.00")),
        (Decimal("2.675"), Decimal("2.68")),
    ],
)
def test_parse_rounds_half_away_from_zero(raw, expected):
    assert parse_money(raw) == expected


def test_negative_ties_round_away_from_zero():
    assert round_money(Decimal("-1.005")) == Decimal("-1.01")


@pytest.mark.parametrize("raw", [float("nan"), float("inf"), "abc", None, True, "", 1e30, "1e40"])
def test_parse_rejects_non_numbers(raw):
    with pytest.raises(InvalidAmount):
        parse_money(raw)
