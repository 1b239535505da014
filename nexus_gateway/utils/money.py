"""Money helpers.

Amounts travel through the decision functions as Decimal pounds. Anything that
is summed across many records is converted to integer pence first so that
totals never drift.
"""

from decimal import Decimal, ROUND_HALF_UP

PENCE = Decimal("0.01")


def to_pence(amount: Decimal | int | float | str) -> int:
    """Convert a pounds amount to integer pence (half-up rounding)"""
    pounds = Decimal(str(amount)).quantize(PENCE, rounding=ROUND_HALF_UP)
    return int(pounds * 100)


def from_pence(pence: int) -> Decimal:
    return (Decimal(pence) / 100).quantize(PENCE)


def format_gbp(pence: int) -> str:
    """Format pence as a GBP string, dropping zero pence: 100000 -> '£1,000'"""
    pounds = from_pence(pence)
    if pounds == pounds.to_integral_value():
        return f"£{int(pounds):,}"
    return f"£{pounds:,.2f}"
