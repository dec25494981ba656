"""
tests/unit/test_abi.py - Hex ABI codec tests.
"""

import pytest

from chains.abi import (
    decode_address,
    decode_int,
    decode_pool_tokens,
    decode_string,
    decode_uint,
    decode_uint_array,
    decode_words,
    encode_address,
    encode_bytes32,
    encode_call,
    encode_uint,
)
from core.constants import SELECTOR_GET_PAIR
from core.exceptions import AbiDecodeError, ErrorCode

from conftest import USDC, WETH, dynamic_arrays_result, hex_result, string_result, word


class TestEncoding:
    def test_get_pair_calldata(self):
        """getPair(USDC, WETH): selector + 2 words = 138 chars."""
        data = encode_call(SELECTOR_GET_PAIR, encode_address(USDC), encode_address(WETH))

        assert data.startswith("0xe6a43905")
        assert len(data) == 2 + 8 + 2 * 64
        assert data.endswith(WETH.lower()[2:])

    def test_encode_uint_range(self):
        assert encode_uint(3000) == hex(3000)[2:].zfill(64)
        with pytest.raises(ValueError):
            encode_uint(-1)
        with pytest.raises(ValueError):
            encode_uint(2**256)

    def test_encode_bytes32_requires_32_bytes(self):
        with pytest.raises(ValueError):
            encode_bytes32("0x1234")


class TestDecoding:
    def test_decode_address(self):
        assert decode_address(hex_result(encode_address(WETH))) == WETH.lower()

    def test_decode_words(self):
        result = hex_result(word(1), word(2), word(3))
        assert decode_words(result, 3) == [1, 2, 3]

    def test_decode_int_negative(self):
        assert decode_int(2**128 - 1, 128) == -1
        assert decode_int(5, 128) == 5

    @pytest.mark.parametrize("raw", [None, "", "0x"])
    def test_empty_result_raises(self, raw):
        with pytest.raises(AbiDecodeError) as exc_info:
            decode_uint(raw)
        assert exc_info.value.code == ErrorCode.ABI_DECODE_ERROR

    def test_short_result_raises(self):
        with pytest.raises(AbiDecodeError):
            decode_words(hex_result(word(1)), 3)

    def test_unaligned_result_raises(self):
        with pytest.raises(AbiDecodeError):
            decode_uint("0x" + "00" * 31)

    def test_decode_string(self):
        assert decode_string(string_result("USDC")) == "USDC"

    def test_decode_bytes32_symbol(self):
        """MKR-style tokens return bytes32 symbols."""
        raw = "0x" + b"MKR".hex().ljust(64, "0")
        assert decode_string(raw) == "MKR"

    def test_decode_string_length_overflow(self):
        raw = hex_result(word(32), word(1000), word(0))
        with pytest.raises(AbiDecodeError):
            decode_string(raw)

    def test_decode_uint_array(self):
        weights = [8 * 10**17, 2 * 10**17]
        assert decode_uint_array(dynamic_arrays_result(weights)) == weights

    def test_decode_pool_tokens(self):
        tokens = [int(WETH, 16), int(USDC, 16)]
        raw = dynamic_arrays_result(tokens, [5, 7], trailing=[123])

        decoded_tokens, balances, last_change = decode_pool_tokens(raw)

        assert decoded_tokens == [WETH.lower(), USDC.lower()]
        assert balances == [5, 7]
        assert last_change == 123

    def test_decode_pool_tokens_length_mismatch(self):
        raw = dynamic_arrays_result([int(WETH, 16)], [5, 7], trailing=[0])
        with pytest.raises(AbiDecodeError):
            decode_pool_tokens(raw)
