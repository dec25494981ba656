# PATH: core/constants.py
"""
Constants for DEXSCAN.

Contains enums, ABI selectors and defaults.
Config values go to config/*.yaml
"""

from enum import Enum
from typing import Final


# =============================================================================
# POOL MODELS
# =============================================================================

class PoolModel(str, Enum):
    """Pool model families. The model selects locator and reader strategies."""
    CONSTANT_PRODUCT = "constant_product"  # Uniswap V2 / Sushiswap style
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"  # Uniswap V3 style
    STABLE = "stable"  # Curve style
    WEIGHTED = "weighted"  # Balancer vault style


class OutcomeStatus(str, Enum):
    """Per-combination scan outcome tag."""
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


class ReserveBasis(str, Enum):
    """What the two reserves of a snapshot measure."""
    BALANCE = "balance"  # token balances held by the pool
    VIRTUAL = "virtual"  # active-range virtual reserves (concentrated liquidity)
    WEIGHT_ADJUSTED = "weight_adjusted"  # balance / normalized weight (weighted pools)


# =============================================================================
# CHAIN CONSTANTS
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

# V3 fee tiers (in hundredths of a bip)
V3_FEE_TIERS: Final[tuple[int, ...]] = (100, 500, 3000, 10000)

# Q64.96 fixed point
Q96: Final[int] = 2**96

# Balancer normalized weights are 18-decimal fixed point
WEIGHT_ONE: Final[int] = 10**18

MAX_TOKEN_DECIMALS: Final[int] = 255

BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# ABI SELECTORS
# =============================================================================

# ERC20
SELECTOR_DECIMALS: Final[str] = "0x313ce567"  # decimals()
SELECTOR_SYMBOL: Final[str] = "0x95d89b41"  # symbol()

# Uniswap V2 factory / pair
SELECTOR_GET_PAIR: Final[str] = "0xe6a43905"  # getPair(address,address)
SELECTOR_TOKEN0: Final[str] = "0x0dfe1681"  # token0()
SELECTOR_TOKEN1: Final[str] = "0xd21220a7"  # token1()
SELECTOR_GET_RESERVES: Final[str] = "0x0902f1ac"  # getReserves()

# Uniswap V3 factory / pool
SELECTOR_GET_POOL: Final[str] = "0x1698ee82"  # getPool(address,address,uint24)
SELECTOR_SLOT0: Final[str] = "0x3850c7bd"  # slot0()
SELECTOR_LIQUIDITY: Final[str] = "0x1a686502"  # liquidity()

# Curve registry / pool
SELECTOR_FIND_POOL_FOR_COINS: Final[str] = "0xa87df06c"  # find_pool_for_coins(address,address)
SELECTOR_GET_COIN_INDICES: Final[str] = "0xeb85226d"  # get_coin_indices(address,address,address)
SELECTOR_COINS: Final[str] = "0xc6610657"  # coins(uint256)
SELECTOR_BALANCES: Final[str] = "0x4903b0d1"  # balances(uint256)

# Balancer vault / pool
SELECTOR_GET_POOL_TOKENS: Final[str] = "0xf94d4668"  # getPoolTokens(bytes32)
SELECTOR_GET_NORMALIZED_WEIGHTS: Final[str] = "0xf89f27ed"  # getNormalizedWeights()


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_RPC_TIMEOUT_SECONDS: Final[int] = 10
DEFAULT_CALL_TIMEOUT_SECONDS: Final[float] = 15.0
DEFAULT_MAX_CONCURRENCY: Final[int] = 8
DEFAULT_MIN_SPREAD_BPS: Final[int] = 10
DEFAULT_MIN_TRIANGLE_BPS: Final[int] = 10
DEFAULT_SCAN_INTERVAL_MS: Final[int] = 5000

# Decimal context precision used for human-scaled quantities and prices
PRICE_PRECISION: Final[int] = 60

SCHEMA_VERSION: Final[str] = "1.0.0"
