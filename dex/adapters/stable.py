"""
dex/adapters/stable.py - Curve style stable pools.

Locate: registry.find_pool_for_coins(token0, token1), then
registry.get_coin_indices(pool, token_a, token_b) for the coin indices.
Pools that only hold the pair as underlying coins (lending wrappers)
are treated as absent: their balances() are in wrapped units.

Read: coins(i), coins(j), balances(i), balances(j). The pool's internal
ordering is by coin index, lowest first.

Reserve ratio is reported as the pool price. For a stableswap curve this
is the balance ratio, not the marginal swap price near the peg.
"""

import asyncio

from chains.abi import decode_address, decode_int, decode_uint, decode_words, encode_address, encode_call, encode_uint
from core.constants import (
    SELECTOR_BALANCES,
    SELECTOR_COINS,
    SELECTOR_FIND_POOL_FOR_COINS,
    SELECTOR_GET_COIN_INDICES,
    PoolModel,
)
from core.exceptions import ReserveUnavailable
from core.logging import get_logger
from core.models import DexDescriptor, PoolRef, ReserveSnapshot
from core.validators import is_zero_address, sort_tokens
from dex.adapters.base import PoolLocator, ReserveReader

logger = get_logger(__name__)


def encode_find_pool_for_coins(token_a: str, token_b: str) -> str:
    token0, token1 = sort_tokens(token_a, token_b)
    return encode_call(SELECTOR_FIND_POOL_FOR_COINS, encode_address(token0), encode_address(token1))


def encode_get_coin_indices(pool: str, token_a: str, token_b: str) -> str:
    return encode_call(
        SELECTOR_GET_COIN_INDICES,
        encode_address(pool),
        encode_address(token_a),
        encode_address(token_b),
    )


class StableLocator(PoolLocator):
    """Registry lookup with coin indices."""

    pool_model = PoolModel.STABLE

    async def _locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        result = await self.caller.call(dex.authority, encode_find_pool_for_coins(token_a, token_b))
        pool_address = decode_address(result)

        if is_zero_address(pool_address):
            return None

        raw_indices = await self.caller.call(
            dex.authority, encode_get_coin_indices(pool_address, token_a, token_b)
        )
        index_a, index_b, is_underlying = decode_words(raw_indices, 3)

        if is_underlying:
            logger.debug(
                f"Skipping {dex.key} pool {pool_address}: pair held as underlying coins",
                extra={"context": {"token_a": token_a, "token_b": token_b}},
            )
            return None

        return PoolRef(
            address=pool_address,
            dex=dex,
            token_a=token_a,
            token_b=token_b,
            indices=(decode_int(index_a, 128), decode_int(index_b, 128)),
        )


class StableReader(ReserveReader):
    """coins/balances reader."""

    pool_model = PoolModel.STABLE

    async def _read(self, pool: PoolRef) -> ReserveSnapshot:
        if pool.indices is None:
            raise ReserveUnavailable(
                message=f"Stable pool {pool.address} has no coin indices",
                details={"dex": pool.dex.key, "pool_address": pool.address},
            )

        first, second = sorted(pool.indices)

        raw_coin0, raw_coin1, raw_bal0, raw_bal1 = await asyncio.gather(
            self.caller.call(pool.address, encode_call(SELECTOR_COINS, encode_uint(first))),
            self.caller.call(pool.address, encode_call(SELECTOR_COINS, encode_uint(second))),
            self.caller.call(pool.address, encode_call(SELECTOR_BALANCES, encode_uint(first))),
            self.caller.call(pool.address, encode_call(SELECTOR_BALANCES, encode_uint(second))),
        )

        return ReserveSnapshot(
            pool_address=pool.address,
            token0=decode_address(raw_coin0),
            token1=decode_address(raw_coin1),
            reserve0=decode_uint(raw_bal0),
            reserve1=decode_uint(raw_bal1),
            block_number=self.caller.block_number,
        )
