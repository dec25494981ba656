"""
chains/abi.py - Minimal ABI encoding/decoding for read-only calls.

Only what the locators, readers and token resolver need:
- static words: address, uint, int, bool, bytes32
- dynamic: string, address[], uint256[]

All values are 32-byte words (64 hex chars). Dynamic values are
referenced by a byte offset word pointing into the same payload.
"""

from core.exceptions import AbiDecodeError

WORD_HEX = 64
UINT256_MAX = 2**256 - 1


# =============================================================================
# ENCODING
# =============================================================================

def encode_address(address: str) -> str:
    """Left-pad a 20-byte address to one word."""
    return address.lower().replace("0x", "").zfill(WORD_HEX)


def encode_uint(value: int) -> str:
    """Encode an unsigned integer as one word."""
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"uint out of range: {value}")
    return hex(value)[2:].zfill(WORD_HEX)


def encode_bytes32(value: str) -> str:
    """Encode a 0x-prefixed 32-byte value as one word."""
    data = value[2:] if value.startswith("0x") else value
    if len(data) != WORD_HEX:
        raise ValueError(f"bytes32 must be 32 bytes: {value}")
    return data.lower()


def encode_call(selector: str, *words: str) -> str:
    """Concatenate selector and pre-encoded argument words."""
    return selector + "".join(words)


# =============================================================================
# DECODING
# =============================================================================

def _strip(hex_result: str | None) -> str:
    if not hex_result or hex_result == "0x":
        raise AbiDecodeError(message="Empty call result")
    data = hex_result[2:] if hex_result.startswith("0x") else hex_result
    if len(data) % WORD_HEX != 0:
        raise AbiDecodeError(
            message=f"Call result is not word-aligned: {len(data)} chars",
            details={"raw": hex_result[:100]},
        )
    return data


def decode_words(hex_result: str | None, count: int) -> list[int]:
    """
    Decode the first `count` words as unsigned ints.

    Raises:
        AbiDecodeError: If the result is empty or too short
    """
    data = _strip(hex_result)
    if len(data) < count * WORD_HEX:
        raise AbiDecodeError(
            message=f"Call result too short: {len(data)} chars, need {count} words",
            details={"data_length": len(data), "raw": hex_result[:100] if hex_result else ""},
        )
    return [int(data[i * WORD_HEX:(i + 1) * WORD_HEX], 16) for i in range(count)]


def decode_uint(hex_result: str | None) -> int:
    return decode_words(hex_result, 1)[0]


def decode_int(word: int, bits: int = 256) -> int:
    """Interpret an unsigned word as two's complement signed int."""
    if word >= 2 ** (bits - 1):
        return word - 2**bits
    return word


def word_to_address(word: int) -> str:
    return "0x" + hex(word)[2:].zfill(40)[-40:]


def decode_address(hex_result: str | None) -> str:
    return word_to_address(decode_uint(hex_result))


def _read_length_at(data: str, byte_offset: int) -> tuple[int, int]:
    """Return (length, hex position of first element) for a dynamic value."""
    start = byte_offset * 2
    if start + WORD_HEX > len(data):
        raise AbiDecodeError(
            message=f"Dynamic offset {byte_offset} out of bounds",
            details={"data_length": len(data)},
        )
    length = int(data[start:start + WORD_HEX], 16)
    return length, start + WORD_HEX


def decode_string(hex_result: str | None) -> str:
    """
    Decode an ABI string return value.

    Legacy tokens return bytes32 instead of string; a single-word result
    is decoded as a right-padded bytes32.
    """
    data = _strip(hex_result)

    if len(data) == WORD_HEX:
        raw = bytes.fromhex(data).rstrip(b"\x00")
        return raw.decode("utf-8", errors="replace")

    offset = int(data[:WORD_HEX], 16)
    length, pos = _read_length_at(data, offset)
    end = pos + length * 2
    if end > len(data):
        raise AbiDecodeError(
            message=f"String length {length} exceeds payload",
            details={"data_length": len(data)},
        )
    return bytes.fromhex(data[pos:end]).decode("utf-8", errors="replace")


def decode_dynamic_array(data: str, head_index: int) -> list[int]:
    """
    Decode a dynamic uint/address array whose offset is in head word `head_index`.

    Args:
        data: Stripped hex payload (no 0x)
        head_index: Index of the head word holding the byte offset
    """
    head_pos = head_index * WORD_HEX
    if head_pos + WORD_HEX > len(data):
        raise AbiDecodeError(
            message=f"Head word {head_index} out of bounds",
            details={"data_length": len(data)},
        )
    offset = int(data[head_pos:head_pos + WORD_HEX], 16)
    length, pos = _read_length_at(data, offset)
    end = pos + length * WORD_HEX
    if end > len(data):
        raise AbiDecodeError(
            message=f"Array length {length} exceeds payload",
            details={"data_length": len(data)},
        )
    return [int(data[pos + i * WORD_HEX:pos + (i + 1) * WORD_HEX], 16) for i in range(length)]


def decode_uint_array(hex_result: str | None) -> list[int]:
    """Decode a single uint256[] return value."""
    return decode_dynamic_array(_strip(hex_result), 0)


def decode_pool_tokens(hex_result: str | None) -> tuple[list[str], list[int], int]:
    """
    Decode Balancer Vault.getPoolTokens return value.

    Returns:
        (tokens, balances, last_change_block)
    """
    data = _strip(hex_result)
    tokens = [word_to_address(w) for w in decode_dynamic_array(data, 0)]
    balances = decode_dynamic_array(data, 1)
    last_change_block = decode_words(hex_result, 3)[2]

    if len(tokens) != len(balances):
        raise AbiDecodeError(
            message=f"getPoolTokens length mismatch: {len(tokens)} tokens, {len(balances)} balances",
        )
    return tokens, balances, last_change_block
