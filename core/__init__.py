"""
core - Core utilities and models for DEXSCAN.

This package contains:
- models.py: Data models (Token, DexDescriptor, PoolRef, ReserveSnapshot, PriceReport, ScanOutcome)
- constants.py: Enums, selectors and defaults
- exceptions.py: Typed exceptions with error codes
- math.py: Exact integer/Decimal arithmetic (no float)
- pricing.py: Reserve ordering and price normalization
- validators.py: Address helpers
- logging.py: Structured JSON logging
"""

from core.constants import OutcomeStatus, PoolModel, ReserveBasis, V3_FEE_TIERS
from core.exceptions import (
    AbiDecodeError,
    ConfigError,
    ErrorCode,
    InfraError,
    LocatorUnavailable,
    MetadataUnavailable,
    PairMismatch,
    ReserveUnavailable,
    RPCTimeoutError,
    ScanError,
    UnsupportedPoolModel,
)
from core.logging import get_logger, setup_logging
from core.models import (
    DexDescriptor,
    PoolRef,
    PriceReport,
    ReserveSnapshot,
    ScanOutcome,
    Token,
)
from core.pricing import amount_out, normalize, order_reserves, quote_amount_out, raw_price_ratio

__all__ = [
    # Constants
    "OutcomeStatus",
    "ReserveBasis",
    "PoolModel",
    "V3_FEE_TIERS",
    # Exceptions
    "ScanError",
    "ErrorCode",
    "InfraError",
    "RPCTimeoutError",
    "AbiDecodeError",
    "MetadataUnavailable",
    "LocatorUnavailable",
    "ReserveUnavailable",
    "PairMismatch",
    "UnsupportedPoolModel",
    "ConfigError",
    # Logging
    "get_logger",
    "setup_logging",
    # Models
    "Token",
    "DexDescriptor",
    "PoolRef",
    "ReserveSnapshot",
    "PriceReport",
    "ScanOutcome",
    # Pricing
    "amount_out",
    "normalize",
    "order_reserves",
    "quote_amount_out",
    "raw_price_ratio",
]
