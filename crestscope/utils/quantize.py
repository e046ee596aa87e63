from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def q(x: Decimal, step: Decimal = CENT) -> Decimal:
    """Quantize a decimal to the nearest step, halves away from zero."""
    return x.quantize(step, rounding=ROUND_HALF_UP)


def fmt2(x: Decimal) -> str:
    """Format a decimal with exactly two fractional digits."""
    return f"{q(x):.2f}"
