"""
scanner/spread.py - Cross-venue spread detection.

Groups FOUND reports by unordered token pair, orients each to the pair's
first-seen (base, quote) direction, and compares the base price across
venues:

- buy venue: lowest price of base in quote
- sell venue: highest price of base in quote
- spread_bps = (sell - buy) / buy * 10_000
- net_spread_bps subtracts both venues' swap fees when known

Reports with an undefined price never participate.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from core.math import spread_bps
from core.models import PriceReport, ScanOutcome, Token


@dataclass(frozen=True)
class VenuePrice:
    """Price of base in quote on one venue."""
    venue: str
    pool_address: str
    price: Decimal
    raw_ratio: Optional[int]


@dataclass(frozen=True)
class Spread:
    """Price gap for one pair between two venues."""
    base: Token
    quote: Token
    buy: VenuePrice
    sell: VenuePrice
    spread_bps: Decimal
    net_spread_bps: Optional[Decimal]
    venues_quoted: int

    @property
    def pair_label(self) -> str:
        return f"{self.base.symbol}/{self.quote.symbol}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pair": self.pair_label,
            "base": self.base.address,
            "quote": self.quote.address,
            "buy_venue": self.buy.venue,
            "buy_pool": self.buy.pool_address,
            "buy_price": str(self.buy.price),
            "sell_venue": self.sell.venue,
            "sell_pool": self.sell.pool_address,
            "sell_price": str(self.sell.price),
            "spread_bps": str(self.spread_bps.quantize(Decimal("0.01"))),
            "net_spread_bps": (
                str(self.net_spread_bps.quantize(Decimal("0.01")))
                if self.net_spread_bps is not None else None
            ),
            "venues_quoted": self.venues_quoted,
        }


def _pair_key(report: PriceReport) -> frozenset[str]:
    return frozenset((report.token_a.address.lower(), report.token_b.address.lower()))


def _oriented_price(report: PriceReport, base: Token) -> Optional[Decimal]:
    """Price of `base` in the other token of the report."""
    if report.token_a == base:
        return report.price_a_to_b
    return report.price_b_to_a


def _oriented_raw_ratio(report: PriceReport, base: Token) -> Optional[int]:
    # raw_ratio is only defined in the report's own a->b direction
    return report.raw_ratio if report.token_a == base else None


def find_spreads(
    outcomes: Iterable[ScanOutcome],
    min_spread_bps: Decimal | int = 0,
    venue_fees_bps: Optional[Dict[str, int]] = None,
) -> list[Spread]:
    """
    Detect cross-venue spreads from scan outcomes.

    Args:
        outcomes: Scan outcomes (non-FOUND ones are ignored)
        min_spread_bps: Minimum gross spread to report
        venue_fees_bps: Optional {venue: swap fee in bps} for net spread

    Returns:
        Spreads sorted by spread_bps descending
    """
    grouped: dict[frozenset[str], list[PriceReport]] = {}
    for outcome in outcomes:
        report = outcome.report
        if not outcome.is_found or report is None or report.undefined_price:
            continue
        grouped.setdefault(_pair_key(report), []).append(report)

    threshold = Decimal(min_spread_bps)
    spreads: list[Spread] = []

    for reports in grouped.values():
        base, quote = reports[0].token_a, reports[0].token_b

        prices: dict[str, VenuePrice] = {}
        for report in reports:
            price = _oriented_price(report, base)
            if price is None or report.venue in prices:
                continue
            prices[report.venue] = VenuePrice(
                venue=report.venue,
                pool_address=report.pool_address,
                price=price,
                raw_ratio=_oriented_raw_ratio(report, base),
            )

        if len(prices) < 2:
            continue

        ranked = sorted(prices.values(), key=lambda p: p.price)
        buy, sell = ranked[0], ranked[-1]
        gross = spread_bps(buy.price, sell.price)

        if gross < threshold:
            continue

        net = None
        if venue_fees_bps is not None and buy.venue in venue_fees_bps and sell.venue in venue_fees_bps:
            net = gross - venue_fees_bps[buy.venue] - venue_fees_bps[sell.venue]

        spreads.append(Spread(
            base=base,
            quote=quote,
            buy=buy,
            sell=sell,
            spread_bps=gross,
            net_spread_bps=net,
            venues_quoted=len(prices),
        ))

    spreads.sort(key=lambda s: s.spread_bps, reverse=True)
    return spreads
