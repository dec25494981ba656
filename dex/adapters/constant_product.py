"""
dex/adapters/constant_product.py - Uniswap V2 style pools.

Locate: factory.getPair(token0, token1), zero address = no pool.
Read: pair.token0(), pair.token1(), pair.getReserves().

getReserves returns (uint112 reserve0, uint112 reserve1, uint32 blockTimestampLast);
reserve0 belongs to token0 as declared by the pair itself.
"""

import asyncio

from chains.abi import decode_address, decode_words, encode_address, encode_call
from core.constants import (
    SELECTOR_GET_PAIR,
    SELECTOR_GET_RESERVES,
    SELECTOR_TOKEN0,
    SELECTOR_TOKEN1,
    PoolModel,
)
from core.models import DexDescriptor, PoolRef, ReserveSnapshot
from core.validators import is_zero_address, sort_tokens
from dex.adapters.base import ContractCaller, PoolLocator, ReserveReader


def encode_get_pair(token_a: str, token_b: str) -> str:
    """Encode factory.getPair with the pair in canonical order."""
    token0, token1 = sort_tokens(token_a, token_b)
    return encode_call(SELECTOR_GET_PAIR, encode_address(token0), encode_address(token1))


async def read_pool_tokens(caller: ContractCaller, pool_address: str) -> tuple[str, str]:
    """Read the pool's declared (token0, token1)."""
    raw0, raw1 = await asyncio.gather(
        caller.call(pool_address, SELECTOR_TOKEN0),
        caller.call(pool_address, SELECTOR_TOKEN1),
    )
    return decode_address(raw0), decode_address(raw1)


class ConstantProductLocator(PoolLocator):
    """Factory getPair lookup."""

    pool_model = PoolModel.CONSTANT_PRODUCT

    async def _locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        result = await self.caller.call(dex.authority, encode_get_pair(token_a, token_b))
        pair_address = decode_address(result)

        if is_zero_address(pair_address):
            return None

        return PoolRef(address=pair_address, dex=dex, token_a=token_a, token_b=token_b)


class ConstantProductReader(ReserveReader):
    """token0/token1/getReserves reader."""

    pool_model = PoolModel.CONSTANT_PRODUCT

    async def _read(self, pool: PoolRef) -> ReserveSnapshot:
        (token0, token1), raw_reserves = await asyncio.gather(
            read_pool_tokens(self.caller, pool.address),
            self.caller.call(pool.address, SELECTOR_GET_RESERVES),
        )
        reserve0, reserve1, _ = decode_words(raw_reserves, 3)

        return ReserveSnapshot(
            pool_address=pool.address,
            token0=token0,
            token1=token1,
            reserve0=reserve0,
            reserve1=reserve1,
            block_number=self.caller.block_number,
        )
