# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for DEXSCAN tests.

The `chain` fixture is an in-memory contract state: responses are
registered per (contract, calldata) and served through a MagicMock
provider whose eth_call is an AsyncMock. Unregistered calls revert.
"""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from chains.abi import encode_address, encode_call, encode_uint  # noqa: E402
from core.constants import (  # noqa: E402
    SELECTOR_BALANCES,
    SELECTOR_COINS,
    SELECTOR_DECIMALS,
    SELECTOR_FIND_POOL_FOR_COINS,
    SELECTOR_GET_COIN_INDICES,
    SELECTOR_GET_NORMALIZED_WEIGHTS,
    SELECTOR_GET_PAIR,
    SELECTOR_GET_POOL,
    SELECTOR_GET_POOL_TOKENS,
    SELECTOR_GET_RESERVES,
    SELECTOR_LIQUIDITY,
    SELECTOR_SLOT0,
    SELECTOR_SYMBOL,
    SELECTOR_TOKEN0,
    SELECTOR_TOKEN1,
    ZERO_ADDRESS,
)
from core.exceptions import InfraError  # noqa: E402

# Ethereum mainnet addresses used across tests
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"

V2_FACTORY = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
SUSHI_FACTORY = "0xC0AEe478e3658e2610c5F7A4A2E1777cE9e4f2Ac"
V3_FACTORY = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
CURVE_REGISTRY = "0x90E00ACe148ca3b23Ac1bC8C240C2a7Dd9c2d7f5"
BALANCER_VAULT = "0xBA12222222228d8Ba445958a75a0704d566BF2C8"


def word(value: int) -> str:
    return encode_uint(value)


def hex_result(*words: str) -> str:
    return "0x" + "".join(words)


def string_result(text: str) -> str:
    data = text.encode("utf-8").hex()
    padded = data.ljust(((len(data) + 63) // 64) * 64 or 64, "0")
    return hex_result(word(32), word(len(text.encode("utf-8"))), padded)


def dynamic_arrays_result(*arrays: list[int], trailing: list[int] = ()) -> str:
    """Encode N dynamic uint arrays followed by static trailing words."""
    head_words = len(arrays) + len(trailing)
    heads, tails = [], []
    offset = head_words * 32
    for array in arrays:
        heads.append(word(offset))
        tails.append(word(len(array)) + "".join(word(v) for v in array))
        offset += 32 * (len(array) + 1)
    return hex_result(*heads, *(word(v) for v in trailing), *tails)


class FakeChain:
    """Scriptable eth_call responses."""

    def __init__(self):
        self.responses: dict[tuple[str, str], object] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.provider = MagicMock()
        self.provider.eth_call = AsyncMock(side_effect=self._eth_call)
        self.provider.get_stats_summary = MagicMock(return_value={})

    async def _eth_call(self, to: str, data: str, block: str = "latest"):
        self.calls.append((to.lower(), data, block))
        key = (to.lower(), data)
        if key not in self.responses:
            raise InfraError(message=f"execution reverted: {to} {data[:10]}")

        result = self.responses[key]
        if callable(result):
            result = await result()
        if isinstance(result, Exception):
            raise result
        return MagicMock(result=result, latency_ms=5)

    def on(self, to: str, data: str, result: object) -> None:
        self.responses[(to.lower(), data)] = result

    def hang(self, to: str, data: str, seconds: float = 10.0, result: str | None = None) -> None:
        async def slow():
            await asyncio.sleep(seconds)
            return result or hex_result(word(0))
        self.on(to, data, slow)

    def calls_to(self, selector: str) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[1].startswith(selector)]

    # -- tokens ---------------------------------------------------------------

    def token(self, address: str, symbol: str, decimals: int) -> None:
        self.on(address, SELECTOR_DECIMALS, hex_result(word(decimals)))
        self.on(address, SELECTOR_SYMBOL, string_result(symbol))

    # -- constant product -----------------------------------------------------

    def v2_factory_miss(self, factory: str, token0: str, token1: str) -> None:
        self.on(factory, _get_pair(token0, token1), hex_result(encode_address(ZERO_ADDRESS)))

    def v2_pair(self, factory: str, pair: str, token0: str, token1: str,
                reserve0: int, reserve1: int) -> None:
        self.on(factory, _get_pair(token0, token1), hex_result(encode_address(pair)))
        self.on(pair, SELECTOR_TOKEN0, hex_result(encode_address(token0)))
        self.on(pair, SELECTOR_TOKEN1, hex_result(encode_address(token1)))
        self.on(pair, SELECTOR_GET_RESERVES, hex_result(word(reserve0), word(reserve1), word(1_700_000_000)))

    # -- concentrated liquidity ----------------------------------------------

    def v3_pool(self, factory: str, pool: str, token0: str, token1: str, fee: int,
                sqrt_price_x96: int, liquidity: int, fee_tiers=(100, 500, 3000, 10000)) -> None:
        for tier in fee_tiers:
            address = pool if tier == fee else ZERO_ADDRESS
            self.on(factory, _get_pool(token0, token1, tier), hex_result(encode_address(address)))
        self.on(pool, SELECTOR_TOKEN0, hex_result(encode_address(token0)))
        self.on(pool, SELECTOR_TOKEN1, hex_result(encode_address(token1)))
        # slot0: sqrtPriceX96, tick, observation fields, feeProtocol, unlocked
        self.on(pool, SELECTOR_SLOT0, hex_result(word(sqrt_price_x96), *(word(0) for _ in range(5)), word(1)))
        self.on(pool, SELECTOR_LIQUIDITY, hex_result(word(liquidity)))

    # -- stable ---------------------------------------------------------------

    def stable_pool(self, registry: str, pool: str, coins: list[str], balances: list[int],
                    token_a: str, token_b: str, underlying: bool = False) -> None:
        self.on(registry, _find_pool(token_a, token_b), hex_result(encode_address(pool)))
        index_a = next(i for i, c in enumerate(coins) if c.lower() == token_a.lower())
        index_b = next(i for i, c in enumerate(coins) if c.lower() == token_b.lower())
        self.on(
            registry,
            encode_call(SELECTOR_GET_COIN_INDICES, encode_address(pool),
                        encode_address(token_a), encode_address(token_b)),
            hex_result(word(index_a), word(index_b), word(1 if underlying else 0)),
        )
        for i, (coin, balance) in enumerate(zip(coins, balances)):
            self.on(pool, encode_call(SELECTOR_COINS, word(i)), hex_result(encode_address(coin)))
            self.on(pool, encode_call(SELECTOR_BALANCES, word(i)), hex_result(word(balance)))

    # -- weighted -------------------------------------------------------------

    def weighted_pool(self, vault: str, pool_id: str, tokens: list[str],
                      balances: list[int], weights: list[int]) -> None:
        token_words = [int(t, 16) for t in tokens]
        self.on(
            vault,
            encode_call(SELECTOR_GET_POOL_TOKENS, pool_id[2:].lower()),
            dynamic_arrays_result(token_words, balances, trailing=[18_000_000]),
        )
        pool_address = "0x" + pool_id[2:42]
        self.on(pool_address, SELECTOR_GET_NORMALIZED_WEIGHTS, dynamic_arrays_result(weights))


def _sorted(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a.lower() < b.lower() else (b, a)


def _get_pair(token_a: str, token_b: str) -> str:
    t0, t1 = _sorted(token_a, token_b)
    return encode_call(SELECTOR_GET_PAIR, encode_address(t0), encode_address(t1))


def _get_pool(token_a: str, token_b: str, fee: int) -> str:
    t0, t1 = _sorted(token_a, token_b)
    return encode_call(SELECTOR_GET_POOL, encode_address(t0), encode_address(t1), word(fee))


def _find_pool(token_a: str, token_b: str) -> str:
    t0, t1 = _sorted(token_a, token_b)
    return encode_call(SELECTOR_FIND_POOL_FOR_COINS, encode_address(t0), encode_address(t1))


@pytest.fixture
def chain() -> FakeChain:
    """Fresh in-memory contract state."""
    return FakeChain()


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
