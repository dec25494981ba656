"""
dex/adapters/ - Pool-model specific locators and reserve readers.

Adapters:
- constant_product: Uniswap V2 style factory/pair
- concentrated_liquidity: Uniswap V3 style factory/pool (virtual reserves)
- stable: Curve style registry/pool
- weighted: Balancer style vault/pool (weight-adjusted reserves)

Selection is keyed by DexDescriptor.pool_model; nothing outside this
package branches on the pool model.
"""

from core.constants import PoolModel
from core.exceptions import UnsupportedPoolModel
from dex.adapters.base import ContractCaller, PoolLocator, ReserveReader
from dex.adapters.concentrated_liquidity import (
    ConcentratedLiquidityLocator,
    ConcentratedLiquidityReader,
)
from dex.adapters.constant_product import ConstantProductLocator, ConstantProductReader
from dex.adapters.stable import StableLocator, StableReader
from dex.adapters.weighted import WeightedLocator, WeightedReader

LOCATORS: dict[PoolModel, type[PoolLocator]] = {
    PoolModel.CONSTANT_PRODUCT: ConstantProductLocator,
    PoolModel.CONCENTRATED_LIQUIDITY: ConcentratedLiquidityLocator,
    PoolModel.STABLE: StableLocator,
    PoolModel.WEIGHTED: WeightedLocator,
}

READERS: dict[PoolModel, type[ReserveReader]] = {
    PoolModel.CONSTANT_PRODUCT: ConstantProductReader,
    PoolModel.CONCENTRATED_LIQUIDITY: ConcentratedLiquidityReader,
    PoolModel.STABLE: StableReader,
    PoolModel.WEIGHTED: WeightedReader,
}


def get_locator(pool_model: PoolModel, caller: ContractCaller) -> PoolLocator:
    """Instantiate the locator for a pool model."""
    try:
        return LOCATORS[pool_model](caller)
    except KeyError:
        raise UnsupportedPoolModel(
            message=f"No locator for pool model {pool_model}",
            details={"pool_model": str(pool_model)},
        ) from None


def get_reader(pool_model: PoolModel, caller: ContractCaller) -> ReserveReader:
    """Instantiate the reserve reader for a pool model."""
    try:
        return READERS[pool_model](caller)
    except KeyError:
        raise UnsupportedPoolModel(
            message=f"No reserve reader for pool model {pool_model}",
            details={"pool_model": str(pool_model)},
        ) from None


__all__ = [
    "ContractCaller",
    "PoolLocator",
    "ReserveReader",
    "ConstantProductLocator",
    "ConstantProductReader",
    "ConcentratedLiquidityLocator",
    "ConcentratedLiquidityReader",
    "StableLocator",
    "StableReader",
    "WeightedLocator",
    "WeightedReader",
    "LOCATORS",
    "READERS",
    "get_locator",
    "get_reader",
]
