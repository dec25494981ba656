# PATH: core/models.py
"""
Core data models for DEXSCAN.

Raw on-chain amounts are int. Human-scaled amounts and prices are Decimal.

LIFECYCLE:
- Token, DexDescriptor: configuration-time, read-only during a scan
- PoolRef, ReserveSnapshot, PriceReport, ScanOutcome: created fresh per
  scan and discarded after reporting

ORDERING CONTRACT:
- ReserveSnapshot.token0/token1 is the pool's INTERNAL ordering
- PriceReport.token_a/token_b is the CALLER's requested ordering
- The two are never assumed to match; core.pricing reconciles them
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from core.constants import OutcomeStatus, PoolModel, ReserveBasis
from core.exceptions import ErrorCode


@dataclass(frozen=True, eq=False)
class Token:
    """Token with resolved metadata. Symbol is display only and not unique."""
    address: str
    symbol: str
    decimals: int

    def __hash__(self) -> int:
        return hash(self.address.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return False
        return self.address.lower() == other.address.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class DexDescriptor:
    """
    A venue: one DEX deployment.

    authority is the pool-locating contract: factory (constant product,
    concentrated liquidity), registry (stable) or vault (weighted).
    """
    key: str
    name: str
    pool_model: PoolModel
    authority: str
    fee_tiers: tuple[int, ...] = ()
    fee_bps: Optional[int] = None
    pool_ids: tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "pool_model": self.pool_model.value,
            "authority": self.authority,
            "fee_tiers": list(self.fee_tiers),
            "fee_bps": self.fee_bps,
            "pool_ids": list(self.pool_ids),
        }


@dataclass(frozen=True)
class PoolRef:
    """Resolved pool instance for a queried pair on one venue."""
    address: str
    dex: DexDescriptor
    token_a: str
    token_b: str
    fee: Optional[int] = None
    pool_id: Optional[str] = None
    # Pool-internal indices of (token_a, token_b) for multi-coin pools
    indices: Optional[tuple[int, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "dex": self.dex.key,
            "token_a": self.token_a,
            "token_b": self.token_b,
            "fee": self.fee,
            "pool_id": self.pool_id,
            "indices": list(self.indices) if self.indices else None,
        }


@dataclass(frozen=True)
class ReserveSnapshot:
    """Two raw reserves in the pool's internal token ordering."""
    pool_address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    block_number: Optional[int] = None
    basis: ReserveBasis = ReserveBasis.BALANCE

    def contains(self, token: str) -> bool:
        lowered = token.lower()
        return lowered in (self.token0.lower(), self.token1.lower())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool_address": self.pool_address,
            "token0": self.token0,
            "token1": self.token1,
            "reserve0": str(self.reserve0),
            "reserve1": str(self.reserve1),
            "block_number": self.block_number,
            "basis": self.basis.value,
        }


@dataclass(frozen=True)
class PriceReport:
    """
    Prices for (token_a, token_b) on one venue, in caller order.

    price_a_to_b is "token_b per 1 token_a". When either reserve is zero
    both prices are None and undefined_price is True. raw_ratio is None
    only when reserve_a is zero; an empty token_b side gives raw_ratio 0.

    reserve_basis tells how to read the reserves. Only BALANCE reserves are
    the pool's actual holdings; VIRTUAL and WEIGHT_ADJUSTED reserves price
    the pool correctly but do not measure its liquidity.
    """
    token_a: Token
    token_b: Token
    venue: str
    pool_address: str
    raw_reserve_a: int
    raw_reserve_b: int
    reserve_a: Decimal
    reserve_b: Decimal
    price_a_to_b: Optional[Decimal]
    price_b_to_a: Optional[Decimal]
    raw_ratio: Optional[int]
    block_number: Optional[int] = None
    reserve_basis: ReserveBasis = ReserveBasis.BALANCE

    @property
    def undefined_price(self) -> bool:
        return self.price_a_to_b is None

    @property
    def pair_label(self) -> str:
        return f"{self.token_a.symbol}/{self.token_b.symbol}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pair": self.pair_label,
            "venue": self.venue,
            "pool_address": self.pool_address,
            "token_a": self.token_a.to_dict(),
            "token_b": self.token_b.to_dict(),
            "raw_reserve_a": str(self.raw_reserve_a),
            "raw_reserve_b": str(self.raw_reserve_b),
            "reserve_a": str(self.reserve_a),
            "reserve_b": str(self.reserve_b),
            "price_a_to_b": str(self.price_a_to_b) if self.price_a_to_b is not None else None,
            "price_b_to_a": str(self.price_b_to_a) if self.price_b_to_a is not None else None,
            "raw_ratio": str(self.raw_ratio) if self.raw_ratio is not None else None,
            "reserve_basis": self.reserve_basis.value,
            "undefined_price": self.undefined_price,
            "block_number": self.block_number,
        }


@dataclass
class ScanOutcome:
    """Outcome of one (pair, venue) combination."""
    index: int
    status: OutcomeStatus
    token_a: str
    token_b: str
    venue: str
    report: Optional[PriceReport] = None
    error_code: Optional[ErrorCode] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def found(
        cls, index: int, token_a: str, token_b: str, venue: str, report: PriceReport
    ) -> "ScanOutcome":
        return cls(index, OutcomeStatus.FOUND, token_a, token_b, venue, report=report)

    @classmethod
    def not_found(cls, index: int, token_a: str, token_b: str, venue: str) -> "ScanOutcome":
        return cls(index, OutcomeStatus.NOT_FOUND, token_a, token_b, venue)

    @classmethod
    def error(
        cls,
        index: int,
        token_a: str,
        token_b: str,
        venue: str,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ScanOutcome":
        return cls(
            index,
            OutcomeStatus.ERROR,
            token_a,
            token_b,
            venue,
            error_code=code,
            message=message,
            details=details or {},
        )

    @property
    def is_found(self) -> bool:
        return self.status == OutcomeStatus.FOUND

    @property
    def is_error(self) -> bool:
        return self.status == OutcomeStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "index": self.index,
            "status": self.status.value,
            "token_a": self.token_a,
            "token_b": self.token_b,
            "venue": self.venue,
        }
        if self.report is not None:
            result["report"] = self.report.to_dict()
        if self.error_code is not None:
            result["error_code"] = self.error_code.value
            result["message"] = self.message
            if self.details:
                result["details"] = self.details
        return result
