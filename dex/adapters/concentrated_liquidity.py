"""
dex/adapters/concentrated_liquidity.py - Uniswap V3 style pools.

Locate: factory.getPool(token0, token1, fee) for each configured fee tier.
The first tier (in config order) with a deployed pool wins; a tier whose
lookup reverts is skipped.

Read: token0(), token1(), slot0(), liquidity().
Concentrated pools do not expose reserves, so the reader reports the
virtual reserves of the active range:

    reserve0 = L * 2**96 // sqrtPriceX96
    reserve1 = L * sqrtPriceX96 // 2**96

reserve1 / reserve0 == (sqrtPriceX96 / 2**96) ** 2, the raw spot price.
"""

import asyncio

from chains.abi import decode_address, decode_uint, decode_words, encode_address, encode_call, encode_uint
from core.constants import (
    Q96,
    SELECTOR_GET_POOL,
    SELECTOR_LIQUIDITY,
    SELECTOR_SLOT0,
    V3_FEE_TIERS,
    PoolModel,
    ReserveBasis,
)
from core.models import DexDescriptor, PoolRef, ReserveSnapshot
from core.validators import is_zero_address, sort_tokens
from dex.adapters.base import PoolLocator, ReserveReader
from dex.adapters.constant_product import read_pool_tokens


def encode_get_pool(token_a: str, token_b: str, fee: int) -> str:
    """Encode factory.getPool with the pair in canonical order."""
    token0, token1 = sort_tokens(token_a, token_b)
    return encode_call(
        SELECTOR_GET_POOL,
        encode_address(token0),
        encode_address(token1),
        encode_uint(fee),
    )


def virtual_reserves(liquidity: int, sqrt_price_x96: int) -> tuple[int, int]:
    """
    Virtual (reserve0, reserve1) of the active range.

    Returns (0, 0) for an uninitialized pool (sqrtPriceX96 == 0).
    """
    if sqrt_price_x96 == 0:
        return 0, 0
    reserve0 = liquidity * Q96 // sqrt_price_x96
    reserve1 = liquidity * sqrt_price_x96 // Q96
    return reserve0, reserve1


class ConcentratedLiquidityLocator(PoolLocator):
    """Factory getPool lookup across fee tiers."""

    pool_model = PoolModel.CONCENTRATED_LIQUIDITY

    async def _pool_for_tier(self, dex: DexDescriptor, token_a: str, token_b: str, fee: int) -> str:
        result = await self.caller.call(dex.authority, encode_get_pool(token_a, token_b, fee))
        return decode_address(result)

    async def _locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        fee_tiers = dex.fee_tiers or V3_FEE_TIERS

        answered = await self._lookup_all(
            dex, fee_tiers, [self._pool_for_tier(dex, token_a, token_b, fee) for fee in fee_tiers]
        )

        for fee, pool_address in answered:
            if not is_zero_address(pool_address):
                return PoolRef(
                    address=pool_address,
                    dex=dex,
                    token_a=token_a,
                    token_b=token_b,
                    fee=fee,
                )

        return None


class ConcentratedLiquidityReader(ReserveReader):
    """slot0/liquidity reader reporting virtual reserves."""

    pool_model = PoolModel.CONCENTRATED_LIQUIDITY

    async def _read(self, pool: PoolRef) -> ReserveSnapshot:
        (token0, token1), raw_slot0, raw_liquidity = await asyncio.gather(
            read_pool_tokens(self.caller, pool.address),
            self.caller.call(pool.address, SELECTOR_SLOT0),
            self.caller.call(pool.address, SELECTOR_LIQUIDITY),
        )
        sqrt_price_x96 = decode_words(raw_slot0, 1)[0]
        liquidity = decode_uint(raw_liquidity)

        reserve0, reserve1 = virtual_reserves(liquidity, sqrt_price_x96)

        return ReserveSnapshot(
            pool_address=pool.address,
            token0=token0,
            token1=token1,
            reserve0=reserve0,
            reserve1=reserve1,
            block_number=self.caller.block_number,
            basis=ReserveBasis.VIRTUAL,
        )
