"""
scanner/triangles.py - Three-token cycle detection over scan prices.

Every FOUND report with a defined price gives two directed edges:
token_a -> token_b at price_a_to_b and token_b -> token_a at price_b_to_a.
Per direction only the best venue is kept (highest rate after its swap
fee, when the fee is known). A cycle start -> x -> y -> start is reported
when the product of its three rates exceeds 1:

    profit_bps = (rate_1 * rate_2 * rate_3 - 1) * 10_000

Each set of three tokens is checked in both directions. A cycle is
reported once, starting from its lowest token address.

When every hop is a constant-product venue with a known fee, the cycle is
also run through amount_out() for one whole unit of the start token, so
the report shows how much of the spot profit survives pool depth.
"""

from dataclasses import dataclass
from decimal import Decimal, localcontext
from itertools import combinations
from typing import Any, Dict, Iterable, Optional

from core.constants import BPS_DENOMINATOR, PRICE_PRECISION, PoolModel, ReserveBasis
from core.models import DexDescriptor, PriceReport, ScanOutcome, Token
from core.pricing import quote_amount_out

Edge = tuple[str, str]


@dataclass(frozen=True)
class Hop:
    """One directed swap leg on one venue."""
    venue: str
    pool_address: str
    token_in: Token
    token_out: Token
    # token_out per token_in, after the venue fee when it is known
    rate: Decimal
    fee_bps: Optional[int]
    report: PriceReport
    simulatable: bool = False

    @property
    def sells_token_a(self) -> bool:
        return self.report.token_a == self.token_in

    def to_dict(self) -> Dict[str, Any]:
        return {
            "venue": self.venue,
            "pool_address": self.pool_address,
            "token_in": self.token_in.symbol,
            "token_out": self.token_out.symbol,
            "rate": str(self.rate),
            "fee_bps": self.fee_bps,
        }


@dataclass(frozen=True)
class Triangle:
    """A profitable start -> x -> y -> start cycle."""
    hops: tuple[Hop, Hop, Hop]
    rate_product: Decimal
    profit_bps: Decimal
    fees_applied: bool
    one_unit_out: Optional[int] = None

    @property
    def start(self) -> Token:
        return self.hops[0].token_in

    @property
    def path_label(self) -> str:
        symbols = [hop.token_in.symbol for hop in self.hops] + [self.start.symbol]
        return " -> ".join(symbols)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path_label,
            "start": self.start.address,
            "hops": [hop.to_dict() for hop in self.hops],
            "rate_product": str(self.rate_product),
            "profit_bps": str(self.profit_bps.quantize(Decimal("0.01"))),
            "fees_applied": self.fees_applied,
            "one_unit_in": str(10 ** self.start.decimals),
            "one_unit_out": str(self.one_unit_out) if self.one_unit_out is not None else None,
        }


def simulate(hops: Iterable[Hop], amount_in: int) -> Optional[int]:
    """
    Push `amount_in` raw units through every hop with amount_out().

    Returns None if any hop is not a constant-product pool with a known fee.
    """
    amount = amount_in
    for hop in hops:
        if not hop.simulatable or hop.fee_bps is None:
            return None
        amount = quote_amount_out(hop.report, amount, hop.fee_bps, sell_token_a=hop.sells_token_a)
    return amount


def _best_edges(outcomes: Iterable[ScanOutcome], venues: Iterable[DexDescriptor]) -> Dict[Edge, Hop]:
    by_key = {venue.key: venue for venue in venues}
    best: Dict[Edge, Hop] = {}

    for outcome in outcomes:
        report = outcome.report
        if not outcome.is_found or report is None or report.undefined_price:
            continue

        venue = by_key.get(report.venue)
        fee_bps = venue.fee_bps if venue is not None else None
        simulatable = (
            venue is not None
            and venue.pool_model == PoolModel.CONSTANT_PRODUCT
            and fee_bps is not None
            and report.reserve_basis == ReserveBasis.BALANCE
        )

        directions = (
            (report.token_a, report.token_b, report.price_a_to_b),
            (report.token_b, report.token_a, report.price_b_to_a),
        )
        for token_in, token_out, price in directions:
            rate = price
            if fee_bps is not None:
                rate = price * (BPS_DENOMINATOR - fee_bps) / BPS_DENOMINATOR

            edge = (token_in.address.lower(), token_out.address.lower())
            if edge in best and best[edge].rate >= rate:
                continue
            best[edge] = Hop(
                venue=report.venue,
                pool_address=report.pool_address,
                token_in=token_in,
                token_out=token_out,
                rate=rate,
                fee_bps=fee_bps,
                report=report,
                simulatable=simulatable,
            )

    return best


def find_triangles(
    outcomes: Iterable[ScanOutcome],
    venues: Iterable[DexDescriptor] = (),
    min_profit_bps: Decimal | int = 0,
) -> list[Triangle]:
    """
    Detect profitable three-token cycles from scan outcomes.

    Args:
        outcomes: Scan outcomes (non-FOUND ones are ignored)
        venues: Venue descriptors, for swap fees and pool models
        min_profit_bps: Minimum cycle profit to report

    Returns:
        Triangles sorted by profit_bps descending
    """
    threshold = Decimal(min_profit_bps)
    triangles: list[Triangle] = []

    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION

        edges = _best_edges(outcomes, venues)
        tokens = sorted({address for edge in edges for address in edge})

        for a, b, c in combinations(tokens, 3):
            for path in ((a, b, c), (a, c, b)):
                legs = [edges.get((path[i], path[(i + 1) % 3])) for i in range(3)]
                if any(leg is None for leg in legs):
                    continue

                product = legs[0].rate * legs[1].rate * legs[2].rate
                profit = (product - 1) * BPS_DENOMINATOR
                if profit <= 0 or profit < threshold:
                    continue

                hops = (legs[0], legs[1], legs[2])
                triangles.append(Triangle(
                    hops=hops,
                    rate_product=product,
                    profit_bps=profit,
                    fees_applied=all(hop.fee_bps is not None for hop in hops),
                    one_unit_out=simulate(hops, 10 ** hops[0].token_in.decimals),
                ))

    triangles.sort(key=lambda t: t.profit_bps, reverse=True)
    return triangles
