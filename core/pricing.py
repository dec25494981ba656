# PATH: core/pricing.py
"""
core/pricing.py - Price normalization from reserve snapshots.

PRICE CONTRACT:
- price_a_to_b is "token_b per 1 token_a" in human units
- price_b_to_a is its reciprocal
- raw_ratio = floor(reserve_b * 10**decimals_a / (reserve_a * 10**decimals_b))
  computed in unbounded ints only, never through float or Decimal
- Zero on either side means the price is undefined (None), never a
  division error

ORDERING:
The snapshot carries the pool's internal token ordering. The caller's
(token_a, token_b) order is matched against it explicitly; if neither
internal token matches the requested pair, PairMismatch is raised.

SWAP QUOTES:
amount_out() is the constant-product output for an exact input with the
venue fee taken from the input (Uniswap V2 router math for fee_bps=30).
It is only meaningful on BALANCE reserves of a constant-product pool.
"""

from typing import Optional

from core.constants import BPS_DENOMINATOR
from core.exceptions import PairMismatch
from core.math import divide, mul_div_floor, pow10, scale_down
from core.models import PriceReport, ReserveSnapshot, Token
from core.validators import same_address


def order_reserves(
    snapshot: ReserveSnapshot,
    token_a: str,
    token_b: str,
) -> tuple[int, int]:
    """
    Select (reserve_a, reserve_b) from a snapshot in caller order.

    Raises:
        PairMismatch: If the snapshot's tokens are not {token_a, token_b}
    """
    if same_address(snapshot.token0, token_a) and same_address(snapshot.token1, token_b):
        return snapshot.reserve0, snapshot.reserve1
    if same_address(snapshot.token0, token_b) and same_address(snapshot.token1, token_a):
        return snapshot.reserve1, snapshot.reserve0

    raise PairMismatch(
        message=(
            f"Pool {snapshot.pool_address} holds ({snapshot.token0}, {snapshot.token1}), "
            f"queried ({token_a}, {token_b})"
        ),
        details={
            "pool_address": snapshot.pool_address,
            "pool_token0": snapshot.token0,
            "pool_token1": snapshot.token1,
            "token_a": token_a,
            "token_b": token_b,
        },
    )


def raw_price_ratio(
    reserve_a: int,
    reserve_b: int,
    decimals_a: int,
    decimals_b: int,
) -> Optional[int]:
    """
    Decimal-adjusted integer price of token_a in token_b.

    Returns None when reserve_a is zero.
    """
    if reserve_a == 0:
        return None
    return mul_div_floor(reserve_b, pow10(decimals_a), reserve_a * pow10(decimals_b))


def normalize(
    snapshot: ReserveSnapshot,
    token_a: Token,
    token_b: Token,
    venue: str,
) -> PriceReport:
    """
    Build a PriceReport for (token_a, token_b) from a reserve snapshot.

    Args:
        snapshot: Reserves in the pool's internal ordering
        token_a: Requested first token (with decimals)
        token_b: Requested second token (with decimals)
        venue: Venue key for the report

    Returns:
        PriceReport in caller order

    Raises:
        PairMismatch: If the snapshot does not hold the requested pair
    """
    reserve_a, reserve_b = order_reserves(snapshot, token_a.address, token_b.address)

    human_a = scale_down(reserve_a, token_a.decimals)
    human_b = scale_down(reserve_b, token_b.decimals)

    if human_a == 0 or human_b == 0:
        price_a_to_b = None
        price_b_to_a = None
    else:
        price_a_to_b = divide(human_b, human_a)
        price_b_to_a = divide(human_a, human_b)

    return PriceReport(
        token_a=token_a,
        token_b=token_b,
        venue=venue,
        pool_address=snapshot.pool_address,
        raw_reserve_a=reserve_a,
        raw_reserve_b=reserve_b,
        reserve_a=human_a,
        reserve_b=human_b,
        price_a_to_b=price_a_to_b,
        price_b_to_a=price_b_to_a,
        raw_ratio=raw_price_ratio(reserve_a, reserve_b, token_a.decimals, token_b.decimals),
        block_number=snapshot.block_number,
        reserve_basis=snapshot.basis,
    )


def amount_out(reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> int:
    """
    Output of an exact-input swap against constant-product reserves.

        in_with_fee = amount_in * (10000 - fee_bps)
        out = in_with_fee * reserve_out // (reserve_in * 10000 + in_with_fee)

    Returns 0 if any amount is zero.

    Raises:
        ValueError: On negative amounts or fee_bps outside [0, 10000)
    """
    if not 0 <= fee_bps < BPS_DENOMINATOR:
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {fee_bps}")
    if min(reserve_in, reserve_out, amount_in) < 0:
        raise ValueError("Reserves and amount_in must be non-negative")
    if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
        return 0

    in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    return in_with_fee * reserve_out // (reserve_in * BPS_DENOMINATOR + in_with_fee)


def quote_amount_out(report: PriceReport, amount_in: int, fee_bps: int, sell_token_a: bool = True) -> int:
    """Swap `amount_in` raw units of one side of `report` for the other."""
    if sell_token_a:
        return amount_out(report.raw_reserve_a, report.raw_reserve_b, amount_in, fee_bps)
    return amount_out(report.raw_reserve_b, report.raw_reserve_a, amount_in, fee_bps)
