"""Money helpers — amounts are stored as floats rounded to cents."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def money(value) -> float:
    """Round an amount to two decimal places (half-up) and return it as a float."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def to_minor_units(value) -> int:
    """Convert a major-unit amount (e.g. dollars) to integer minor units (cents)."""
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
