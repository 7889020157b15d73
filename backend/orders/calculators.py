"""
Order money calculations.

All arithmetic uses ``Decimal`` quantized to cents so stored totals are exact
and repeatable: 12.99 x 2 + 3.50 x 1 is always 29.48.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENT = Decimal("0.01")


def quantize(amount) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderCalculator:
    """Line subtotal and order total arithmetic shared by creation and checks."""

    @staticmethod
    def line_subtotal(unit_price, quantity: int) -> Decimal:
        return quantize(Decimal(unit_price) * quantity)

    @staticmethod
    def order_total(subtotals: Iterable[Decimal]) -> Decimal:
        # Start with Decimal('0.00') so an empty iterable still returns money
        return quantize(sum(subtotals, Decimal("0.00")))
