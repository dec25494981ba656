# PATH: config/__init__.py
"""
Configuration loading utilities for DEXSCAN.

Files (per chain key):
- chains.yaml: chain_id, rpc_urls, timeout_seconds
- dexes.yaml: venues (pool_model, authority, fee_tiers, fee_bps, pool_ids)
- tokens.yaml: symbol -> address, decimals
- pairs.yaml: BASE/QUOTE pairs plus scan settings

Raw loaders return dicts. build_* functions validate and turn them into
core models; any invalid entry raises ConfigError.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.constants import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MIN_SPREAD_BPS,
    DEFAULT_MIN_TRIANGLE_BPS,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    V3_FEE_TIERS,
    PoolModel,
)
from core.exceptions import ConfigError
from core.models import DexDescriptor, Token
from core.validators import is_address, is_pool_id, is_valid_decimals

CONFIG_DIR = Path(__file__).parent


def load_yaml(filename: str, config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory
        config_dir: Directory override (defaults to this package)

    Returns:
        Parsed YAML as dict
    """
    filepath = (config_dir or CONFIG_DIR) / filename
    if not filepath.exists():
        raise ConfigError(
            message=f"Config file not found: {filepath}",
            details={"path": str(filepath)},
        )

    with open(filepath, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"Malformed YAML in {filepath}: {e}",
                details={"path": str(filepath)},
            ) from e

    if not isinstance(data, dict):
        raise ConfigError(
            message=f"Top level of {filepath} must be a mapping",
            details={"path": str(filepath)},
        )
    return data


def load_chains(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load chains configuration."""
    return load_yaml("chains.yaml", config_dir)


def load_dexes(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load DEXes configuration."""
    return load_yaml("dexes.yaml", config_dir)


def load_tokens(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load tokens configuration."""
    return load_yaml("tokens.yaml", config_dir)


def load_pairs(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load pairs and scan settings."""
    return load_yaml("pairs.yaml", config_dir)


def get_chain_config(chain_key: str, chains: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get validated configuration for a specific chain.

    Returns:
        {"chain_id", "rpc_urls", "timeout_seconds"}
    """
    if chain_key not in chains:
        raise ConfigError(
            message=f"Unknown chain: {chain_key}",
            details={"chain": chain_key, "known": sorted(chains)},
        )

    chain = chains[chain_key] or {}
    rpc_urls = chain.get("rpc_urls") or []
    if not isinstance(rpc_urls, list) or not rpc_urls:
        raise ConfigError(
            message=f"Chain {chain_key} has no rpc_urls",
            details={"chain": chain_key},
        )
    if not isinstance(chain.get("chain_id"), int):
        raise ConfigError(
            message=f"Chain {chain_key} has no integer chain_id",
            details={"chain": chain_key},
        )

    return {
        "chain_id": chain["chain_id"],
        "rpc_urls": [str(url) for url in rpc_urls],
        "timeout_seconds": float(chain.get("timeout_seconds", DEFAULT_RPC_TIMEOUT_SECONDS)),
    }


def _build_venue(chain_key: str, dex_key: str, entry: Dict[str, Any]) -> DexDescriptor:
    where = {"chain": chain_key, "dex": dex_key}

    try:
        pool_model = PoolModel(entry.get("pool_model"))
    except ValueError:
        raise ConfigError(
            message=f"{dex_key}: unknown pool_model {entry.get('pool_model')!r}",
            details=where,
        ) from None

    authority = entry.get("authority")
    if not is_address(authority):
        raise ConfigError(message=f"{dex_key}: invalid authority {authority!r}", details=where)

    fee_tiers = entry.get("fee_tiers")
    if fee_tiers is None:
        fee_tiers = V3_FEE_TIERS if pool_model == PoolModel.CONCENTRATED_LIQUIDITY else ()
    if not all(isinstance(tier, int) and tier > 0 for tier in fee_tiers):
        raise ConfigError(message=f"{dex_key}: fee_tiers must be positive ints", details=where)
    if pool_model == PoolModel.CONCENTRATED_LIQUIDITY and not fee_tiers:
        raise ConfigError(message=f"{dex_key}: no fee tiers configured", details=where)

    pool_ids = entry.get("pool_ids") or ()
    for pool_id in pool_ids:
        if not is_pool_id(pool_id):
            raise ConfigError(message=f"{dex_key}: invalid pool id {pool_id!r}", details=where)

    fee_bps = entry.get("fee_bps")
    if fee_bps is not None and (not isinstance(fee_bps, int) or fee_bps < 0):
        raise ConfigError(message=f"{dex_key}: fee_bps must be a non-negative int", details=where)

    return DexDescriptor(
        key=dex_key,
        name=entry.get("name", dex_key),
        pool_model=pool_model,
        authority=authority,
        fee_tiers=tuple(fee_tiers),
        fee_bps=fee_bps,
        pool_ids=tuple(pool_ids),
    )


def build_venues(chain_key: str, dexes: Dict[str, Any]) -> list[DexDescriptor]:
    """Enabled venues for a chain, in file order."""
    chain_dexes = dexes.get(chain_key)
    if not chain_dexes:
        raise ConfigError(
            message=f"No DEXes configured for chain: {chain_key}",
            details={"chain": chain_key},
        )

    return [
        _build_venue(chain_key, dex_key, entry or {})
        for dex_key, entry in chain_dexes.items()
        if (entry or {}).get("enabled", True)
    ]


def build_tokens(chain_key: str, tokens: Dict[str, Any]) -> Dict[str, Token]:
    """Configured tokens for a chain, keyed by symbol."""
    result: Dict[str, Token] = {}

    for symbol, entry in (tokens.get(chain_key) or {}).items():
        entry = entry or {}
        address = entry.get("address")
        decimals = entry.get("decimals")
        if not is_address(address):
            raise ConfigError(
                message=f"{symbol}: invalid address {address!r}",
                details={"chain": chain_key, "token": symbol},
            )
        if not is_valid_decimals(decimals):
            raise ConfigError(
                message=f"{symbol}: invalid decimals {decimals!r}",
                details={"chain": chain_key, "token": symbol},
            )
        result[symbol] = Token(address=address, symbol=symbol, decimals=decimals)

    return result


def _resolve_symbol(chain_key: str, side: str, tokens: Dict[str, Token]) -> str:
    if is_address(side):
        return side
    token = tokens.get(side)
    if token is None:
        raise ConfigError(
            message=f"Unknown token {side!r} on {chain_key}",
            details={"chain": chain_key, "token": side},
        )
    return token.address


def build_pairs(
    chain_key: str,
    pairs: Dict[str, Any],
    tokens: Dict[str, Token],
) -> list[tuple[str, str]]:
    """
    Requested (token_a, token_b) addresses for a chain, in file order.

    Each entry is "BASE/QUOTE" where a side is a configured symbol or a
    raw address.
    """
    result = []
    for entry in (pairs.get(chain_key) or []):
        if not isinstance(entry, str) or entry.count("/") != 1:
            raise ConfigError(
                message=f"Pair must look like BASE/QUOTE, got {entry!r}",
                details={"chain": chain_key},
            )
        base, quote = (side.strip() for side in entry.split("/"))
        result.append((
            _resolve_symbol(chain_key, base, tokens),
            _resolve_symbol(chain_key, quote, tokens),
        ))
    return result


def get_scan_config(pairs: Dict[str, Any]) -> Dict[str, Any]:
    """Scan settings from pairs.yaml with defaults applied."""
    scan = pairs.get("scan") or {}

    max_concurrency = scan.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
    call_timeout = scan.get("call_timeout_seconds", DEFAULT_CALL_TIMEOUT_SECONDS)
    min_spread = scan.get("min_spread_bps", DEFAULT_MIN_SPREAD_BPS)
    min_triangle = scan.get("min_triangle_bps", DEFAULT_MIN_TRIANGLE_BPS)

    if not isinstance(max_concurrency, int) or max_concurrency < 1:
        raise ConfigError(message=f"scan.max_concurrency must be >= 1, got {max_concurrency!r}")
    if not isinstance(call_timeout, (int, float)) or call_timeout <= 0:
        raise ConfigError(message=f"scan.call_timeout_seconds must be > 0, got {call_timeout!r}")
    if not isinstance(min_spread, (int, float)) or min_spread < 0:
        raise ConfigError(message=f"scan.min_spread_bps must be >= 0, got {min_spread!r}")
    if not isinstance(min_triangle, (int, float)) or min_triangle < 0:
        raise ConfigError(message=f"scan.min_triangle_bps must be >= 0, got {min_triangle!r}")

    return {
        "max_concurrency": max_concurrency,
        "call_timeout_seconds": float(call_timeout),
        "min_spread_bps": min_spread,
        "min_triangle_bps": min_triangle,
    }
