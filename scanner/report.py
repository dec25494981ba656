"""
scanner/report.py - Scan report artifact.

One report per scan cycle:
- health: RPC stats and outcome counts
- outcomes: every (pair, venue) combination in scan order
- spreads: cross-venue spreads above threshold
- triangles: profitable three-token cycles above threshold

Saved as JSON under <output_dir>/scan_<timestamp>.json and printed to
console as a short table.
"""

import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from core.constants import SCHEMA_VERSION, OutcomeStatus
from core.logging import get_logger
from core.models import ScanOutcome
from scanner.spread import Spread
from scanner.triangles import Triangle

logger = get_logger(__name__)


def summarize(outcomes: Iterable[ScanOutcome]) -> Dict[str, Any]:
    """Count outcomes per status and per error code."""
    outcomes = list(outcomes)
    by_status = Counter(outcome.status.value for outcome in outcomes)
    by_error = Counter(
        outcome.error_code.value
        for outcome in outcomes
        if outcome.is_error and outcome.error_code is not None
    )
    undefined = sum(
        1 for outcome in outcomes
        if outcome.report is not None and outcome.report.undefined_price
    )

    return {
        "total": len(outcomes),
        "found": by_status.get(OutcomeStatus.FOUND.value, 0),
        "not_found": by_status.get(OutcomeStatus.NOT_FOUND.value, 0),
        "errors": by_status.get(OutcomeStatus.ERROR.value, 0),
        "undefined_price": undefined,
        "error_codes": dict(by_error.most_common()),
    }


@dataclass
class ScanReport:
    """Serializable result of one scan cycle."""
    chain: str
    block_tag: str
    timestamp: str = ""
    summary: Dict[str, Any] = field(default_factory=dict)
    rpc: Dict[str, Any] = field(default_factory=dict)
    outcomes: List[Dict[str, Any]] = field(default_factory=list)
    spreads: List[Dict[str, Any]] = field(default_factory=list)
    triangles: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "timestamp": self.timestamp,
            "chain": self.chain,
            "block_tag": self.block_tag,
            "summary": self.summary,
            "rpc": self.rpc,
            "spreads": self.spreads,
            "triangles": self.triangles,
            "outcomes": self.outcomes,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def build_scan_report(
    chain: str,
    outcomes: List[ScanOutcome],
    spreads: List[Spread],
    block_tag: str = "latest",
    rpc_stats: Optional[Dict[str, Any]] = None,
    triangles: Optional[List[Triangle]] = None,
) -> ScanReport:
    """
    Assemble a report from scan outcomes, spreads and triangles.

    Args:
        chain: Chain key
        outcomes: Ordered scan outcomes
        spreads: Spreads from find_spreads()
        block_tag: Block the scan was pinned to
        rpc_stats: RPCProvider.get_stats_summary()
        triangles: Cycles from find_triangles()
    """
    return ScanReport(
        chain=chain,
        block_tag=block_tag,
        summary=summarize(outcomes),
        rpc=rpc_stats or {},
        outcomes=[outcome.to_dict() for outcome in outcomes],
        spreads=[spread.to_dict() for spread in spreads],
        triangles=[triangle.to_dict() for triangle in triangles or []],
    )


def save_scan_report(report: ScanReport, output_dir: Path) -> Path:
    """Write the report as JSON and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    path = output_dir / f"scan_{report.chain}_{stamp}.json"

    with open(path, "w", encoding="utf-8") as f:
        f.write(report.to_json())

    logger.info(f"Scan report saved: {path}")
    return path


def print_scan_report(report: ScanReport, limit: int = 10) -> None:
    """Print report to console in formatted style."""
    summary = report.summary

    print("\n" + "=" * 60)
    print(f"SCAN REPORT - {report.chain} @ {report.block_tag}")
    print("=" * 60)
    print(f"Timestamp: {report.timestamp}")
    print(f"Combinations: {summary.get('total', 0)} | "
          f"found {summary.get('found', 0)}, "
          f"not found {summary.get('not_found', 0)}, "
          f"errors {summary.get('errors', 0)}")

    for url, stats in report.rpc.items():
        rpc_pct = stats.get("success_rate", 0) * 100
        print(f"RPC {url[:40]}: {rpc_pct:.1f}% success ({stats.get('total_requests', 0)} requests), "
              f"{stats.get('avg_latency_ms', 0)}ms avg, {stats.get('timeouts', 0)} timeouts")

    error_codes = summary.get("error_codes", {})
    if error_codes:
        print("\nErrors:")
        for code, count in error_codes.items():
            print(f"  {code}: {count}")

    print("\n--- PRICES ---")
    for outcome in report.outcomes:
        if outcome["status"] != OutcomeStatus.FOUND.value:
            continue
        price = outcome["report"]
        value = price["price_a_to_b"]
        shown = f"{float(value):.6f}" if value is not None else "undefined"
        print(f"  {price['pair']:<14} {outcome['venue']:<16} {shown}")

    print("\n--- SPREADS ---")
    if not report.spreads:
        print("  none above threshold")
    for i, spread in enumerate(report.spreads[:limit], 1):
        net = spread.get("net_spread_bps")
        net_part = f", net {net} bps" if net is not None else ""
        print(f"  {i}. {spread['pair']}: buy {spread['buy_venue']} / sell {spread['sell_venue']} "
              f"{spread['spread_bps']} bps{net_part}")

    print("\n--- TRIANGLES ---")
    if not report.triangles:
        print("  none above threshold")
    for i, triangle in enumerate(report.triangles[:limit], 1):
        fee_part = "" if triangle["fees_applied"] else " (some fees unknown)"
        print(f"  {i}. {triangle['path']}: {triangle['profit_bps']} bps{fee_part}")
    print("=" * 60 + "\n")
