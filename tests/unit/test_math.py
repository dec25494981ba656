"""
tests/unit/test_math.py - Tests for core/math.py

Critical tests for:
- Exact scaling of raw amounts
- Integer floor division
- BPS spread
"""

import pytest
from decimal import Decimal

from core.math import divide, mul_div_floor, pow10, scale_down, spread_bps


class TestScaleDown:
    def test_usdc(self):
        assert scale_down(1_500_000, 6) == Decimal("1.5")

    def test_zero_decimals(self):
        assert scale_down(42, 0) == Decimal(42)

    def test_zero_amount(self):
        assert scale_down(0, 18) == 0

    def test_max_uint256_is_exact(self):
        """No digits are lost beyond the default 28-digit context."""
        raw = 2**256 - 1
        scaled = scale_down(raw, 18)
        assert scaled.as_tuple().digits == tuple(int(c) for c in str(raw))
        assert scaled.as_tuple().exponent == -18

    def test_result_is_decimal_not_float(self):
        assert isinstance(scale_down(10**18, 18), Decimal)


class TestMulDivFloor:
    def test_floors(self):
        assert mul_div_floor(7, 3, 2) == 10

    def test_unbounded(self):
        assert mul_div_floor(2**200, 2**200, 2**300) == 2**100

    def test_zero_denominator_raises(self):
        with pytest.raises(ZeroDivisionError):
            mul_div_floor(1, 1, 0)


class TestPow10:
    def test_values(self):
        assert pow10(0) == 1
        assert pow10(18) == 10**18

    def test_negative_raises(self):
        with pytest.raises(ValueError):
            pow10(-1)


class TestDivide:
    def test_precision_beyond_default_context(self):
        result = divide(Decimal(1), Decimal(3))
        assert len(result.as_tuple().digits) > 28


class TestSpreadBps:
    def test_one_percent(self):
        assert spread_bps(Decimal("2000"), Decimal("2020")) == Decimal("100")

    def test_equal_prices(self):
        assert spread_bps(Decimal("1.0001"), Decimal("1.0001")) == 0

    def test_non_positive_low(self):
        assert spread_bps(Decimal("0"), Decimal("5")) == Decimal("0")
