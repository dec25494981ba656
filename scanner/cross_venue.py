"""
scanner/cross_venue.py - Cross-venue price scan.

For every (pair, venue) combination, independently:
    Locate -> Read -> Normalize

CONTRACT:
- len(outcomes) == len(pairs) * len(venues)
- Outcome order is pairs (outer) x venues (inner), regardless of which
  combination finishes first
- An absent pool yields NOT_FOUND; the reader and normalizer are not called
- Any failure is confined to its combination and tagged ERROR(code);
  the scan never aborts early
- Token metadata is per-scan state: a fresh TokenMetadataResolver is
  built for each scan() call
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Iterable, Sequence, TypeVar

from chains.providers import RPCProvider
from core.constants import DEFAULT_CALL_TIMEOUT_SECONDS, DEFAULT_MAX_CONCURRENCY, OutcomeStatus
from core.exceptions import ErrorCode, PairMismatch, RPCTimeoutError, ScanError
from core.logging import get_logger, log_error, log_price
from core.models import DexDescriptor, ScanOutcome, Token
from core.pricing import normalize
from core.validators import same_address
from dex.adapters import ContractCaller, get_locator, get_reader
from dex.tokens import TokenMetadataResolver

logger = get_logger("dexscan.scan")

T = TypeVar("T")

Pair = tuple[str, str]


@dataclass(frozen=True)
class ScanSettings:
    """Scan tuning knobs."""
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS
    block_number: int | None = None


async def bounded(awaitable: Awaitable[T], timeout_seconds: float, step: str) -> T:
    """
    Await with a timeout, surfacing expiry as RPCTimeoutError.

    Args:
        awaitable: Network-bound step
        timeout_seconds: Upper bound in seconds
        step: Step name for the error message
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise RPCTimeoutError(
            message=f"{step} timed out after {timeout_seconds}s",
            details={"step": step, "timeout_seconds": timeout_seconds},
        ) from None


class CrossVenueScanner:
    """
    Scans token pairs across venues and returns ordered outcomes.

    Usage:
        scanner = CrossVenueScanner(provider, known_tokens=tokens)
        outcomes = await scanner.scan([(WETH, USDC)], [uniswap_v2, sushiswap])
    """

    def __init__(
        self,
        provider: RPCProvider,
        settings: ScanSettings | None = None,
        known_tokens: Iterable[Token] = (),
    ):
        self.provider = provider
        self.settings = settings or ScanSettings()
        self.known_tokens = tuple(known_tokens)

    def _new_resolver(self, caller: ContractCaller) -> TokenMetadataResolver:
        resolver = TokenMetadataResolver(caller)
        for token in self.known_tokens:
            resolver.seed(token)
        return resolver

    async def scan(
        self,
        pairs: Sequence[Pair],
        venues: Sequence[DexDescriptor],
    ) -> list[ScanOutcome]:
        """
        Resolve prices for every pair on every venue.

        Args:
            pairs: (token_a, token_b) addresses in requested order
            venues: Venues to query

        Returns:
            One ScanOutcome per combination, in input enumeration order
        """
        start = time.monotonic()
        caller = ContractCaller(self.provider, self.settings.block_number)
        resolver = self._new_resolver(caller)

        combinations = [(pair, venue) for pair in pairs for venue in venues]
        outcomes: list[ScanOutcome | None] = [None] * len(combinations)

        tokens = [token for pair in pairs for token in pair]
        await self._prefetch_tokens(resolver, tokens)

        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        async def run(index: int, pair: Pair, venue: DexDescriptor) -> None:
            async with semaphore:
                outcomes[index] = await self._scan_one(index, pair, venue, caller, resolver)

        await asyncio.gather(*(
            run(index, pair, venue)
            for index, (pair, venue) in enumerate(combinations)
        ))

        results = [outcome for outcome in outcomes if outcome is not None]
        counts = {status.value: 0 for status in OutcomeStatus}
        for outcome in results:
            counts[outcome.status.value] += 1

        logger.info(
            f"Scan complete: {len(results)} combinations",
            extra={"context": {
                "pairs": len(pairs),
                "venues": len(venues),
                "block_tag": caller.block_tag,
                "token_fetches": resolver.fetch_count,
                "duration_ms": int((time.monotonic() - start) * 1000),
                **counts,
            }},
        )
        return results

    async def _prefetch_tokens(self, resolver: TokenMetadataResolver, tokens: list[str]) -> None:
        """Resolve every distinct token once, up front. Failures stay cached."""
        unique = list(dict.fromkeys(token.lower() for token in tokens))
        results = await asyncio.gather(
            *(bounded(resolver.resolve(token), self.settings.call_timeout_seconds, "resolve")
              for token in unique),
            return_exceptions=True,
        )
        for token, result in zip(unique, results):
            if isinstance(result, Exception):
                code = result.code.value if isinstance(result, ScanError) else ErrorCode.UNKNOWN.value
                logger.warning(
                    f"Token metadata unavailable: {token}",
                    extra={"context": {"token": token, "error_code": code, "error": str(result)}},
                )

    async def _scan_one(
        self,
        index: int,
        pair: Pair,
        venue: DexDescriptor,
        caller: ContractCaller,
        resolver: TokenMetadataResolver,
    ) -> ScanOutcome:
        token_a, token_b = pair
        timeout = self.settings.call_timeout_seconds

        if same_address(token_a, token_b):
            return ScanOutcome.error(
                index, token_a, token_b, venue.key,
                ErrorCode.CONFIG_INVALID,
                f"Pair uses the same token twice: {token_a}",
            )

        try:
            locator = get_locator(venue.pool_model, caller)
            reader = get_reader(venue.pool_model, caller)

            pool = await bounded(locator.locate(venue, token_a, token_b), timeout, "locate")
            if pool is None:
                logger.debug(
                    f"No pool on {venue.key} for {token_a}/{token_b}",
                    extra={"context": {"venue": venue.key, "token_a": token_a, "token_b": token_b}},
                )
                return ScanOutcome.not_found(index, token_a, token_b, venue.key)

            snapshot = await bounded(reader.read(pool), timeout, "read")

            meta_a, meta_b = await bounded(
                asyncio.gather(resolver.resolve(token_a), resolver.resolve(token_b)),
                timeout,
                "resolve",
            )

            report = normalize(snapshot, meta_a, meta_b, venue.key)

        except PairMismatch as e:
            log_error(
                logger,
                e.code.value,
                f"Pool/pair integrity violation on {venue.key}: {e.message}",
                venue=venue.key,
                **e.details,
            )
            return ScanOutcome.error(index, token_a, token_b, venue.key, e.code, e.message, e.details)

        except ScanError as e:
            logger.warning(
                f"{venue.key} {token_a[:10]}/{token_b[:10]} failed: {e}",
                extra={"context": {"venue": venue.key, "error_code": e.code.value}},
            )
            return ScanOutcome.error(index, token_a, token_b, venue.key, e.code, e.message, e.details)

        except Exception as e:
            logger.error(
                f"Unexpected error scanning {venue.key} {token_a}/{token_b}: {e}",
                exc_info=True,
                extra={"context": {"venue": venue.key, "error_type": type(e).__name__}},
            )
            return ScanOutcome.error(
                index, token_a, token_b, venue.key,
                ErrorCode.UNKNOWN,
                f"{type(e).__name__}: {e}",
            )

        log_price(
            logger,
            venue=venue.key,
            pair=report.pair_label,
            price_a_to_b=str(report.price_a_to_b) if report.price_a_to_b is not None else None,
            raw_ratio=report.raw_ratio,
            pool_address=report.pool_address,
        )
        if report.undefined_price:
            logger.info(
                f"{ErrorCode.UNDEFINED_PRICE.value}: {report.pair_label} on {venue.key} has an empty side",
                extra={"context": {
                    "venue": venue.key,
                    "pool_address": report.pool_address,
                    "raw_reserve_a": str(report.raw_reserve_a),
                    "raw_reserve_b": str(report.raw_reserve_b),
                }},
            )

        return ScanOutcome.found(index, token_a, token_b, venue.key, report)
