"""Shared utility helpers for the hl_market_maker package."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def safe_decimal(value, default: str = "0") -> Decimal:
    """Convert *value* to Decimal, returning *default* on failure."""
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError, ArithmeticError):
        return Decimal(default)


def format_fixed(value: Decimal, places: int) -> str:
    """Render *value* with exactly *places* decimals (no exponent notation)."""
    quant = Decimal("1").scaleb(-max(0, places))
    return f"{Decimal(value).quantize(quant, rounding=ROUND_HALF_UP):f}"


def format_price(value: Decimal, places: int) -> str:
    """Like ``format_fixed`` but without trailing fractional zeros ("2998.20" -> "2998.2")."""
    text = format_fixed(value, places)
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def bps_distance(price: Decimal, reference: Decimal) -> Decimal:
    """Absolute distance of *price* from *reference* in basis points."""
    return abs(price - reference) / reference * Decimal("10000")
