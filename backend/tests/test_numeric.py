"""
test_numeric.py - Unit tests for the numeric normalizer.

Every form value passes through ``normalize`` before it reaches the engine,
so it must be total: no input raises, and the output is always a finite,
non-negative float.
"""

from decimal import Decimal

import pytest

from app.services.numeric import (
    AMOUNT_CEILING,
    bounded,
    is_negative_input,
    normalize,
    safe_product,
    safe_sum,
)


class TestNormalize:

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12abc", [], {}, object()])
    def test_unparseable_reads_as_zero(self, raw):
        assert normalize(raw) == 0.0

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf"), "nan", "inf"])
    def test_non_finite_reads_as_zero(self, raw):
        assert normalize(raw) == 0.0

    @pytest.mark.parametrize("raw", [-1, -0.01, "-250", Decimal("-3.5")])
    def test_negative_clamped_to_zero(self, raw):
        assert normalize(raw) == 0.0

    def test_booleans_are_not_numbers(self):
        """A stray checkbox value must not price as 1."""
        assert normalize(True) == 0.0
        assert normalize(False) == 0.0

    @pytest.mark.parametrize(
        "raw, expected",
        [(0, 0.0), (5, 5.0), (2.5, 2.5), ("300", 300.0), (" 42.75 ", 42.75), (Decimal("19.99"), 19.99)],
    )
    def test_valid_numbers_pass_through(self, raw, expected):
        assert normalize(raw) == expected

    def test_result_is_always_float(self):
        assert isinstance(normalize(7), float)
        assert isinstance(normalize("7"), float)

    def test_overflowing_int_reads_as_zero(self):
        assert normalize(10 ** 400) == 0.0


class TestIsNegativeInput:

    @pytest.mark.parametrize("raw", [-1, "-5", " -0.5 ", -1e-9])
    def test_negative_detected(self, raw):
        assert is_negative_input(raw) is True

    @pytest.mark.parametrize("raw", [None, "", "abc", 0, "0", 12, True, float("-inf")])
    def test_non_negative_or_unparseable(self, raw):
        assert is_negative_input(raw) is False


class TestBoundedArithmetic:

    def test_bounded_passes_ordinary_values(self):
        assert bounded(1234.5) == 1234.5

    def test_bounded_saturates_inf_and_zeroes_nan(self):
        assert bounded(float("inf")) == AMOUNT_CEILING
        assert bounded(float("nan")) == 0.0

    def test_product_saturates(self):
        assert safe_product(1e200, 1e200) == AMOUNT_CEILING

    @pytest.mark.parametrize("factors", [(1e200, 1e200, 0), (0, 1e200, 1e200), (1e308, 0)])
    def test_zero_factor_wins_over_overflow(self, factors):
        assert safe_product(*factors) == 0.0

    def test_sum_saturates_instead_of_raising(self):
        assert safe_sum([1e308, 1e308]) == AMOUNT_CEILING

    def test_sum_of_ordinary_values(self):
        assert safe_sum([0.1] * 10) == 1.0
