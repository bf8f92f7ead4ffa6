"""
formatting.py - Display formatting for grams and rupee amounts

Used to build the human-readable FIFO consumption traces. Both formatters
use Indian digit grouping (1,00,000) and keep Decimal precision.
"""

from decimal import Decimal, ROUND_HALF_EVEN, localcontext

from .core import to_decimal


CURRENCY_SYMBOL = "₹"
GRAMS_DECIMAL_PLACES = 3
CURRENCY_DECIMAL_PLACES = 2


def _group_indian(digits: str) -> str:
    """Insert separators: last three digits, then pairs."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def _format_fixed(value: Decimal, places: int) -> str:
    value = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the places
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        quantized = value.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_EVEN)
    sign = "-" if quantized < 0 else ""
    whole, _, frac = format(quantized.copy_abs(), "f").partition(".")
    text = _group_indian(whole)
    if places:
        text += "." + frac.ljust(places, "0")
    return sign + text


def format_grams(value) -> str:
    """Format a quantity as grams with three decimals, e.g. "1,250.500 g"."""
    return _format_fixed(value, GRAMS_DECIMAL_PLACES) + " g"


def format_currency(value) -> str:
    """Format an amount in rupees, e.g. "₹1,00,000.00"."""
    text = _format_fixed(value, CURRENCY_DECIMAL_PLACES)
    if text.startswith("-"):
        return "-" + CURRENCY_SYMBOL + text[1:]
    return CURRENCY_SYMBOL + text
