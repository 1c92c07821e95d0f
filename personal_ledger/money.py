"""
Money amounts.

All amounts are Decimal values with four fractional digits,
matching the Numeric(19, 4) columns they are stored in.
Floats never enter the ledger: repeated increments and
decrements of a float balance drift.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import Field

MONEY_PRECISION = 19
MONEY_SCALE = 4

_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)

ZERO = Decimal("0").quantize(_QUANTUM)

# Request-side amount: strictly positive, at most four decimals
PositiveAmount = Annotated[
    Decimal, Field(gt=0, max_digits=MONEY_PRECISION, decimal_places=MONEY_SCALE)
]


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """
    Normalise a value to a four-decimal Decimal.

    None (e.g. SUM over no rows) becomes zero. Drivers without a
    native decimal type hand back floats; those go through str()
    so the shortest repr is kept instead of the binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP)
