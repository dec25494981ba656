# PATH: core/exceptions.py
"""
Typed exceptions for DEXSCAN.

Every error carries an ErrorCode so that a failed (pair, venue)
combination can be reported with a stable tag instead of a traceback.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Error codes for scan outcomes and logs."""
    # Resolution failures
    METADATA_UNAVAILABLE = "METADATA_UNAVAILABLE"
    LOCATOR_UNAVAILABLE = "LOCATOR_UNAVAILABLE"
    RESERVE_UNAVAILABLE = "RESERVE_UNAVAILABLE"

    # Data integrity
    PAIR_MISMATCH = "PAIR_MISMATCH"
    ABI_DECODE_ERROR = "ABI_DECODE_ERROR"

    # Reportable state, not a hard error
    UNDEFINED_PRICE = "UNDEFINED_PRICE"

    # Infrastructure
    TIMEOUT = "TIMEOUT"
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"

    # Configuration
    UNSUPPORTED_POOL_MODEL = "UNSUPPORTED_POOL_MODEL"
    CONFIG_INVALID = "CONFIG_INVALID"

    UNKNOWN = "UNKNOWN"


class ScanError(Exception):
    """Base exception for DEXSCAN."""

    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str = "",
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InfraError(ScanError):
    """Infrastructure-related errors (RPC transport)."""
    default_code = ErrorCode.INFRA_RPC_ERROR


class RPCTimeoutError(InfraError):
    """RPC call or scan step timed out."""
    default_code = ErrorCode.TIMEOUT


class AbiDecodeError(ScanError):
    """Contract call returned data that does not match the expected ABI."""
    default_code = ErrorCode.ABI_DECODE_ERROR


class MetadataUnavailable(ScanError):
    """Token decimals/symbol could not be read."""
    default_code = ErrorCode.METADATA_UNAVAILABLE


class LocatorUnavailable(ScanError):
    """Pool lookup failed on transport (absence is not an error)."""
    default_code = ErrorCode.LOCATOR_UNAVAILABLE


class ReserveUnavailable(ScanError):
    """Reserve snapshot could not be read or decoded."""
    default_code = ErrorCode.RESERVE_UNAVAILABLE


class PairMismatch(ScanError):
    """Pool's internal tokens do not match the queried pair."""
    default_code = ErrorCode.PAIR_MISMATCH


class UnsupportedPoolModel(ScanError):
    """No locator/reader strategy registered for a pool model."""
    default_code = ErrorCode.UNSUPPORTED_POOL_MODEL


class ConfigError(ScanError):
    """Configuration file is missing or invalid."""
    default_code = ErrorCode.CONFIG_INVALID
