"""
dex/adapters/weighted.py - Balancer vault style weighted pools.

The vault has no pair -> pool lookup, so each venue lists the pool ids
it may serve (config: pool_ids). Locate queries them with
vault.getPoolTokens(poolId); the first pool holding both tokens wins.
A pool id the vault rejects (deregistered, mistyped) is skipped.

Read: vault.getPoolTokens(poolId) and pool.getNormalizedWeights().
Spot price of a weighted pool is (balance_out / w_out) / (balance_in / w_in),
so the reader reports weight-adjusted reserves:

    reserve_i = balance_i * 10**18 // weight_i

and their ratio is the spot price (before swap fee). These are not the
pool's balances, so the snapshot is tagged WEIGHT_ADJUSTED. The pool's
internal ordering is by vault token index, lowest first.
"""

import asyncio

from chains.abi import decode_pool_tokens, decode_uint_array, encode_bytes32, encode_call
from core.constants import (
    SELECTOR_GET_NORMALIZED_WEIGHTS,
    SELECTOR_GET_POOL_TOKENS,
    WEIGHT_ONE,
    PoolModel,
    ReserveBasis,
)
from core.exceptions import ReserveUnavailable
from core.models import DexDescriptor, PoolRef, ReserveSnapshot
from core.validators import same_address
from dex.adapters.base import PoolLocator, ReserveReader


def pool_address_from_id(pool_id: str) -> str:
    """Balancer pool ids start with the 20-byte pool address."""
    return "0x" + pool_id[2:42]


def encode_get_pool_tokens(pool_id: str) -> str:
    return encode_call(SELECTOR_GET_POOL_TOKENS, encode_bytes32(pool_id))


def find_index(tokens: list[str], token: str) -> int | None:
    for i, candidate in enumerate(tokens):
        if same_address(candidate, token):
            return i
    return None


class WeightedLocator(PoolLocator):
    """Query configured vault pool ids for the pair."""

    pool_model = PoolModel.WEIGHTED

    async def _pool_tokens(self, dex: DexDescriptor, pool_id: str) -> list[str]:
        result = await self.caller.call(dex.authority, encode_get_pool_tokens(pool_id))
        tokens, _, _ = decode_pool_tokens(result)
        return tokens

    async def _locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        if not dex.pool_ids:
            return None

        answered = await self._lookup_all(
            dex, dex.pool_ids, [self._pool_tokens(dex, pool_id) for pool_id in dex.pool_ids]
        )

        for pool_id, tokens in answered:
            index_a = find_index(tokens, token_a)
            index_b = find_index(tokens, token_b)
            if index_a is not None and index_b is not None:
                return PoolRef(
                    address=pool_address_from_id(pool_id),
                    dex=dex,
                    token_a=token_a,
                    token_b=token_b,
                    pool_id=pool_id,
                    indices=(index_a, index_b),
                )

        return None


class WeightedReader(ReserveReader):
    """getPoolTokens/getNormalizedWeights reader."""

    pool_model = PoolModel.WEIGHTED

    async def _read(self, pool: PoolRef) -> ReserveSnapshot:
        if pool.pool_id is None or pool.indices is None:
            raise ReserveUnavailable(
                message=f"Weighted pool {pool.address} has no pool id",
                details={"dex": pool.dex.key, "pool_address": pool.address},
            )

        raw_tokens, raw_weights = await asyncio.gather(
            self.caller.call(pool.dex.authority, encode_get_pool_tokens(pool.pool_id)),
            self.caller.call(pool.address, SELECTOR_GET_NORMALIZED_WEIGHTS),
        )
        tokens, balances, _ = decode_pool_tokens(raw_tokens)
        weights = decode_uint_array(raw_weights)

        first, second = sorted(pool.indices)
        if second >= len(tokens) or len(weights) != len(tokens):
            raise ReserveUnavailable(
                message=(
                    f"Weighted pool {pool.address} returned {len(tokens)} tokens, "
                    f"{len(weights)} weights for indices {pool.indices}"
                ),
                details={"dex": pool.dex.key, "pool_address": pool.address},
            )
        if weights[first] == 0 or weights[second] == 0:
            raise ReserveUnavailable(
                message=f"Weighted pool {pool.address} reported a zero weight",
                details={"dex": pool.dex.key, "pool_address": pool.address, "weights": weights},
            )

        return ReserveSnapshot(
            pool_address=pool.address,
            token0=tokens[first],
            token1=tokens[second],
            reserve0=balances[first] * WEIGHT_ONE // weights[first],
            reserve1=balances[second] * WEIGHT_ONE // weights[second],
            block_number=self.caller.block_number,
            basis=ReserveBasis.WEIGHT_ADJUSTED,
        )
