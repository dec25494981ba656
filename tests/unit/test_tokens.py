"""
tests/unit/test_tokens.py - Token metadata resolver tests.
"""

import asyncio

import pytest

from core.constants import SELECTOR_DECIMALS, SELECTOR_SYMBOL
from core.exceptions import ErrorCode, MetadataUnavailable, RPCTimeoutError
from core.models import Token
from dex.adapters import ContractCaller
from dex.tokens import TokenMetadataResolver

from conftest import DAI, USDC, WETH, hex_result, word


@pytest.fixture
def resolver(chain):
    return TokenMetadataResolver(ContractCaller(chain.provider))


class TestResolve:
    @pytest.mark.asyncio
    async def test_reads_decimals_and_symbol(self, chain, resolver):
        chain.token(USDC, "USDC", 6)

        token = await resolver.resolve(USDC)

        assert token == Token(address=USDC, symbol="USDC", decimals=6)
        assert token.symbol == "USDC"
        assert token.decimals == 6

    @pytest.mark.asyncio
    async def test_cached_after_first_resolve(self, chain, resolver):
        chain.token(USDC, "USDC", 6)

        await resolver.resolve(USDC)
        await resolver.resolve(USDC.lower())

        assert len(chain.calls_to(SELECTOR_DECIMALS)) == 1
        assert resolver.fetch_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_resolves_share_one_fetch(self, chain, resolver):
        """Many waiters, one decimals() and one symbol() call."""
        chain.token(WETH, "WETH", 18)

        tokens = await asyncio.gather(*(resolver.resolve(WETH) for _ in range(10)))

        assert all(t.decimals == 18 for t in tokens)
        assert len(chain.calls_to(SELECTOR_DECIMALS)) == 1
        assert len(chain.calls_to(SELECTOR_SYMBOL)) == 1

    @pytest.mark.asyncio
    async def test_seeded_token_is_not_queried(self, chain, resolver):
        resolver.seed(Token(address=DAI, symbol="DAI", decimals=18))

        token = await resolver.resolve(DAI.lower())

        assert token.symbol == "DAI"
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_bytes32_symbol(self, chain, resolver):
        mkr = "0x9f8F72aA9304c8B593d555F12eF6589cC3A579A2"
        chain.on(mkr, SELECTOR_DECIMALS, hex_result(word(18)))
        chain.on(mkr, SELECTOR_SYMBOL, "0x" + b"MKR".hex().ljust(64, "0"))

        token = await resolver.resolve(mkr)

        assert token.symbol == "MKR"


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_decimals_is_metadata_unavailable(self, chain, resolver):
        chain.on(USDC, SELECTOR_SYMBOL, hex_result(word(0)))
        # decimals() not registered: reverts

        with pytest.raises(MetadataUnavailable) as exc_info:
            await resolver.resolve(USDC)

        assert exc_info.value.code == ErrorCode.METADATA_UNAVAILABLE
        assert exc_info.value.details["token"] == USDC

    @pytest.mark.asyncio
    async def test_invalid_decimals(self, chain, resolver):
        chain.on(USDC, SELECTOR_DECIMALS, hex_result(word(300)))
        chain.on(USDC, SELECTOR_SYMBOL, hex_result(word(0)))

        with pytest.raises(MetadataUnavailable):
            await resolver.resolve(USDC)

    @pytest.mark.asyncio
    async def test_failure_is_shared_not_retried(self, chain, resolver):
        """Every waiter in the scan sees the same failure from one fetch."""
        results = await asyncio.gather(
            *(resolver.resolve(USDC) for _ in range(5)),
            return_exceptions=True,
        )
        again = await asyncio.gather(resolver.resolve(USDC), return_exceptions=True)

        assert all(isinstance(r, MetadataUnavailable) for r in results + again)
        assert resolver.fetch_count == 1

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, chain, resolver):
        chain.on(USDC, SELECTOR_DECIMALS, RPCTimeoutError(message="timed out"))
        chain.on(USDC, SELECTOR_SYMBOL, hex_result(word(0)))

        with pytest.raises(RPCTimeoutError):
            await resolver.resolve(USDC)

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_fetch(self, chain, resolver):
        chain.token(WETH, "WETH", 18)
        chain.hang(WETH, SELECTOR_DECIMALS, seconds=0.05, result=hex_result(word(18)))

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(resolver.resolve(WETH), timeout=0.01)

        # the shared fetch keeps running and completes for the next waiter
        token = await resolver.resolve(WETH)
        assert token.decimals == 18
        assert resolver.fetch_count == 1
