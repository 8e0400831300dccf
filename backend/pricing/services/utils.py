from __future__ import annotations

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")
ZERO = Decimal("0")
ONE = Decimal("1")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    if val is None:
        return ZERO
    return Decimal(str(val))


def q2(amount) -> Decimal:
    """Round half-up to cents."""
    return d(amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def q3(amount) -> Decimal:
    return d(amount).quantize(THREEPLACES, rounding=ROUND_HALF_UP)


def round_half_up(amount) -> int:
    """Round to the nearest whole number, halves away from zero (12.5 -> 13)."""
    return int(d(amount).quantize(ONE, rounding=ROUND_HALF_UP))


def round_up_to_next_whole(amount) -> int:
    """Round a Decimal amount up to the next whole number."""
    return int(d(amount).to_integral_value(rounding=ROUND_CEILING))


def has_dimensions(length, width, height) -> bool:
    """True when all three dimensions are given and strictly positive."""
    return all(v is not None and d(v) > 0 for v in (length, width, height))
