from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from wallet.core.errors import InvalidAmount

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def round_money(value: Decimal) -> Decimal:
    # ROUND_HALF_UP rounds ties away from zero, for negatives too
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: Number) -> Decimal:
    """Turn a caller-supplied number into a 2-place Decimal.

    Floats go through their shortest repr so 1000.005 stays 1000.005 and
    rounds to 1000.01 instead of drifting to 1000.00.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount()
    try:
        if isinstance(value, float):
            d = Decimal(repr(value))
        elif isinstance(value, str):
            d = Decimal(value.strip())
        else:
            d = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount()

    if not d.is_finite():
        raise InvalidAmount()
    try:
        # too many digits for the context precision
        return round_money(d)
    except InvalidOperation:
        raise InvalidAmount()
