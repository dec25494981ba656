# PATH: core/validators.py
"""
Address and input validators for DEXSCAN.

CONTRACTS:
- Address comparison is ALWAYS case-insensitive (checksum casing is display only)
- sort_tokens() returns the canonical (lower address first) ordering used
  by factory-style pool lookups
"""

import re

from core.constants import MAX_TOKEN_DECIMALS, ZERO_ADDRESS

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
POOL_ID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_address(value: str) -> bool:
    """Check 0x-prefixed 20-byte hex address format."""
    return isinstance(value, str) and ADDRESS_PATTERN.match(value) is not None


def is_pool_id(value: str) -> bool:
    """Check 0x-prefixed 32-byte hex pool id format."""
    return isinstance(value, str) and POOL_ID_PATTERN.match(value) is not None


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return a.lower() == b.lower()


def is_zero_address(value: str | None) -> bool:
    """True for None, empty, or the zero address."""
    return not value or value.lower() == ZERO_ADDRESS


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """
    Canonical token ordering (Uniswap sortTokens).

    Raises:
        ValueError: If both addresses are the same token
    """
    if same_address(token_a, token_b):
        raise ValueError(f"Identical token addresses: {token_a}")
    if token_a.lower() < token_b.lower():
        return token_a, token_b
    return token_b, token_a


def is_valid_decimals(decimals: object) -> bool:
    """Token decimals must be an int in 0..255 (uint8)."""
    return (
        isinstance(decimals, int)
        and not isinstance(decimals, bool)
        and 0 <= decimals <= MAX_TOKEN_DECIMALS
    )
