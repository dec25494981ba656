#!/usr/bin/env python3
"""
scanner/jobs/run_scan.py - CLI entrypoint for cross-venue price scanning.

Each cycle:
- Scan every configured pair on every enabled venue (one pinned block)
- Detect cross-venue spreads and three-token cycles
- Save a JSON report and print a console summary

Usage:
    python -m scanner.jobs.run_scan --chain ethereum --once
    python -m scanner.jobs.run_scan --chain ethereum --interval 5000
"""

import asyncio
import signal
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

import click

from chains.providers import RPCProvider
from config import (
    build_pairs,
    build_tokens,
    build_venues,
    get_chain_config,
    get_scan_config,
    load_chains,
    load_dexes,
    load_pairs,
    load_tokens,
)
from core.constants import DEFAULT_SCAN_INTERVAL_MS
from core.exceptions import ConfigError, ScanError
from core.logging import get_logger, set_global_context, setup_logging
from core.models import DexDescriptor, Token
from scanner.cross_venue import CrossVenueScanner, ScanSettings
from scanner.report import build_scan_report, print_scan_report, save_scan_report
from scanner.spread import find_spreads
from scanner.triangles import find_triangles

logger = get_logger("dexscan.run")

# Graceful shutdown flag
_shutdown_requested = False


def handle_shutdown(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    global _shutdown_requested
    _shutdown_requested = True
    logger.info("Shutdown requested", extra={"context": {"signal": signum}})


def load_chain_setup(chain: str) -> dict[str, Any]:
    """Load and validate everything one chain needs to scan."""
    chain_config = get_chain_config(chain, load_chains())
    tokens = build_tokens(chain, load_tokens())
    pairs_config = load_pairs()

    return {
        "chain": chain_config,
        "venues": build_venues(chain, load_dexes()),
        "tokens": tokens,
        "pairs": build_pairs(chain, pairs_config, tokens),
        "scan": get_scan_config(pairs_config),
    }


async def verify_chain_id(provider: RPCProvider, expected: int) -> None:
    """Refuse to scan when the endpoints serve a different chain."""
    actual = await provider.get_chain_id()
    if actual != expected:
        raise ConfigError(
            message=f"RPC endpoints report chain_id {actual}, config expects {expected}",
            details={"expected": expected, "actual": actual},
        )


async def run_cycle(
    chain: str,
    provider: RPCProvider,
    pairs: list[tuple[str, str]],
    venues: list[DexDescriptor],
    tokens: dict[str, Token],
    scan_config: dict[str, Any],
    output_path: Path,
    block: int | None = None,
) -> dict[str, Any]:
    """Run one scan cycle and persist its report."""
    if block is None:
        block, latency_ms = await provider.get_block_number()
        logger.info(
            f"Pinned block {block}",
            extra={"context": {"chain": chain, "block": block, "latency_ms": latency_ms}},
        )

    settings = ScanSettings(
        max_concurrency=scan_config["max_concurrency"],
        call_timeout_seconds=scan_config["call_timeout_seconds"],
        block_number=block,
    )
    scanner = CrossVenueScanner(provider, settings, known_tokens=tokens.values())
    outcomes = await scanner.scan(pairs, venues)

    venue_fees = {venue.key: venue.fee_bps for venue in venues if venue.fee_bps is not None}
    spreads = find_spreads(outcomes, Decimal(str(scan_config["min_spread_bps"])), venue_fees)
    triangles = find_triangles(outcomes, venues, Decimal(str(scan_config["min_triangle_bps"])))

    report = build_scan_report(
        chain,
        outcomes,
        spreads,
        block_tag=str(block),
        rpc_stats=provider.get_stats_summary(),
        triangles=triangles,
    )
    save_scan_report(report, output_path)
    print_scan_report(report)

    return report.summary | {"spreads": len(spreads), "triangles": len(triangles)}


async def scan_loop(chain: str, setup: dict[str, Any], provider: RPCProvider,
                    output_path: Path, interval_ms: int) -> None:
    """Continuous scanning loop."""
    cycle_count = 0

    while not _shutdown_requested:
        cycle_count += 1
        logger.info(f"=== Scan Cycle {cycle_count} ===")

        try:
            summary = await run_cycle(
                chain, provider, setup["pairs"], setup["venues"], setup["tokens"],
                setup["scan"], output_path,
            )
            logger.info(
                f"Cycle {cycle_count} complete: {summary['found']}/{summary['total']} found, "
                f"{summary['spreads']} spreads, {summary['triangles']} triangles",
                extra={"context": summary},
            )
        except ScanError as e:
            # Block pinning failed; the next cycle retries
            logger.error(f"Cycle {cycle_count} failed: {e}", extra={"context": e.to_dict()})

        if not _shutdown_requested:
            await asyncio.sleep(interval_ms / 1000)

    logger.info("Scan loop terminated")


@click.command()
@click.option("--chain", "-c", default="ethereum", help="Chain key from config/chains.yaml")
@click.option("--interval", "-i", default=DEFAULT_SCAN_INTERVAL_MS, help="Scan interval in milliseconds")
@click.option("--once", is_flag=True, help="Run single scan cycle and exit")
@click.option("--output-dir", "-o", default="data/reports")
@click.option("--log-level", "-l", default="INFO", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
@click.option("--json-logs/--no-json-logs", default=True)
@click.option("--block", "-b", type=int, default=None, help="Pin the scan to this block (with --once)")
def main(
    chain: str,
    interval: int,
    once: bool,
    output_dir: str,
    log_level: str,
    json_logs: bool,
    block: int | None,
) -> None:
    """DEXSCAN - Cross-venue pool price scanner."""
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="dexscan", chain=chain)

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    output_path = Path(output_dir)

    try:
        setup = load_chain_setup(chain)
    except ScanError as e:
        logger.error(f"Invalid configuration: {e}", extra={"context": e.to_dict()})
        sys.exit(2)

    chain_config = setup["chain"]
    provider = RPCProvider(
        chain_id=chain_config["chain_id"],
        rpc_urls=chain_config["rpc_urls"],
        timeout_seconds=chain_config["timeout_seconds"],
    )

    logger.info(
        "Starting DEXSCAN",
        extra={"context": {
            "chain": chain,
            "pairs": len(setup["pairs"]),
            "venues": [venue.key for venue in setup["venues"]],
            "once": once,
            "block": block,
        }},
    )

    async def run():
        try:
            await verify_chain_id(provider, chain_config["chain_id"])
            if once:
                await run_cycle(
                    chain, provider, setup["pairs"], setup["venues"], setup["tokens"],
                    setup["scan"], output_path, block=block,
                )
            else:
                await scan_loop(chain, setup, provider, output_path, interval)
        finally:
            await provider.close()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Scanner interrupted")
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}", extra={"context": e.to_dict()})
        sys.exit(2)
    except Exception as e:
        logger.error(f"Scanner error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
