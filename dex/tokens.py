"""
dex/tokens.py - Token metadata resolution with per-scan caching.

CONTRACT:
- resolve(address) -> Token (decimals + symbol)
- One resolver per scan; cache is never invalidated during the scan
- Single-flight: concurrent resolve() calls for the same token share one
  in-flight task, so decimals()/symbol() are fetched once per token
- A failure is shared the same way: every waiter of that scan sees the
  same MetadataUnavailable
"""

import asyncio

from chains.abi import decode_string, decode_uint
from core.constants import SELECTOR_DECIMALS, SELECTOR_SYMBOL
from core.exceptions import AbiDecodeError, InfraError, MetadataUnavailable, RPCTimeoutError
from core.logging import get_logger
from core.models import Token
from core.validators import is_valid_decimals
from dex.adapters.base import ContractCaller

logger = get_logger(__name__)


class TokenMetadataResolver:
    """
    Per-scan token metadata cache.

    Usage:
        resolver = TokenMetadataResolver(caller)
        resolver.seed(Token(address=WETH, symbol="WETH", decimals=18))
        usdc = await resolver.resolve(USDC)
    """

    def __init__(self, caller: ContractCaller):
        self.caller = caller
        self._known: dict[str, Token] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self.fetch_count = 0

    def seed(self, token: Token) -> None:
        """Pre-populate the cache with a token known from configuration."""
        self._known[token.address.lower()] = token

    def cached(self, address: str) -> Token | None:
        return self._known.get(address.lower())

    async def resolve(self, address: str) -> Token:
        """
        Resolve decimals and symbol for a token.

        Raises:
            MetadataUnavailable: If the token cannot be queried or is non-conforming
            RPCTimeoutError: If the transport timed out
        """
        key = address.lower()

        known = self._known.get(key)
        if known is not None:
            return known

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(address))
            self._inflight[key] = task

        # Shield so a cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch(self, address: str) -> Token:
        self.fetch_count += 1

        try:
            raw_decimals, raw_symbol = await asyncio.gather(
                self.caller.call(address, SELECTOR_DECIMALS),
                self.caller.call(address, SELECTOR_SYMBOL),
            )
            decimals = decode_uint(raw_decimals)
            symbol = decode_string(raw_symbol)
        except RPCTimeoutError:
            raise
        except (InfraError, AbiDecodeError) as e:
            raise MetadataUnavailable(
                message=f"Token {address} metadata query failed: {e.message}",
                details={"token": address, "cause": e.code.value},
            ) from e

        if not is_valid_decimals(decimals):
            raise MetadataUnavailable(
                message=f"Token {address} reported invalid decimals {decimals}",
                details={"token": address, "decimals": decimals},
            )

        token = Token(address=address, symbol=symbol or address[:10], decimals=decimals)
        self._known[address.lower()] = token

        logger.debug(
            f"Resolved token {token.symbol} ({token.decimals} decimals)",
            extra={"context": {"token": address}},
        )
        return token
