"""
Decimal helpers shared by the calculators.

All arithmetic runs at full Decimal precision; rounding to pennies happens
only when values leave the engine.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
MONTHS = Decimal("12")
WEEKS = Decimal("52")


def to_decimal(value) -> Decimal:
    """Coerce a JSON/Python number to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def pct(value: Decimal) -> Decimal:
    """Convert a 0-100 percentage into a 0-1 fraction."""
    return value / HUNDRED


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning 0 when the denominator is 0."""
    if denominator == 0:
        return ZERO
    return numerator / denominator
