"""Fixed-point money helpers.

Amounts are stored as ``Numeric(15, 2)`` and exchanged as JSON numbers, but
every calculation in the reconciliation engine runs on integer minor units
(hundredths of the base currency) so sums and differences are exact.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def quantize(value: Amount) -> Decimal:
    """Round a money value to the minor unit (half-up)."""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid money amount: {value!r}")


def to_minor(value: Amount) -> int:
    """Convert a major-unit amount to integer minor units."""
    if value is None:
        return 0
    return int(quantize(value) * MINOR_UNITS_PER_MAJOR)


def from_minor(value: int) -> Decimal:
    """Convert integer minor units back to a two-place Decimal."""
    return (Decimal(value) / MINOR_UNITS_PER_MAJOR).quantize(CENT)


def to_number(value: int) -> float:
    """Minor units as a JSON-friendly number."""
    return float(from_minor(value))


def is_whole_cents(value: Amount) -> bool:
    """True when ``value`` has no digits below the minor unit."""
    if value is None:
        return True
    exact = quantize(value)
    return Decimal(str(value)) == exact
