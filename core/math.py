# PATH: core/math.py
"""
core/math.py - Mathematical utilities.

Raw on-chain quantities stay int. Human-scaled quantities and display
prices use Decimal. Nothing in the pricing path goes through float.
"""

from decimal import Decimal, localcontext

from core.constants import BPS_DENOMINATOR, PRICE_PRECISION


def _precision_for(*values: int) -> int:
    """Context precision large enough to hold every digit of the inputs."""
    digits = max((len(str(abs(v))) for v in values), default=0)
    return max(PRICE_PRECISION, digits + 2)


def pow10(exponent: int) -> int:
    """Integer 10**exponent for non-negative exponents."""
    if exponent < 0:
        raise ValueError(f"Negative exponent: {exponent}")
    return 10**exponent


def scale_down(raw: int, decimals: int) -> Decimal:
    """
    Convert a raw token amount to human units (raw / 10**decimals).

    Exact for any raw integer: the context precision grows with the
    number of digits.

    Args:
        raw: Amount in the token's smallest unit
        decimals: Token decimal precision

    Returns:
        Human-scaled Decimal
    """
    with localcontext() as ctx:
        ctx.prec = _precision_for(raw)
        return Decimal(raw).scaleb(-decimals)


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Decimal division at PRICE_PRECISION significant digits."""
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return numerator / denominator


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """
    floor(a * b / denominator) in unbounded integer arithmetic.

    Raises:
        ZeroDivisionError: If denominator is zero
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div_floor denominator is zero")
    return (a * b) // denominator


def spread_bps(low: Decimal, high: Decimal) -> Decimal:
    """
    Relative difference of high over low in basis points.

    Returns Decimal("0") if low is not positive.
    """
    if low <= 0:
        return Decimal("0")
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return (high - low) / low * BPS_DENOMINATOR
