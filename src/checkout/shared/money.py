"""Money helpers. Amounts are floats in major units, rounded half-up to cents."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def format_amount(value: float) -> str:
    """Render an amount the way gateways expect it, e.g. ``44.00``."""
    return str(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))
