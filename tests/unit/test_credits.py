"""Tests for crm_common.credits decimal helpers."""

from decimal import Decimal

import pytest

from src.crm_common.credits import credits_to_display, price_to_display, quantize_credits


class TestQuantizeCredits:
    def test_int_becomes_two_places(self) -> None:
        assert quantize_credits(500) == Decimal("500.00")
        assert str(quantize_credits(500)) == "500.00"

    def test_string_rounds_half_up(self) -> None:
        assert quantize_credits("10.005") == Decimal("10.01")

    def test_garbage_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            quantize_credits("abc")

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError):
            quantize_credits("NaN")

    def test_infinity_rejected(self) -> None:
        with pytest.raises(ValueError):
            quantize_credits(Decimal("Infinity"))

    def test_too_many_digits_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            quantize_credits("1e30")


class TestDisplay:
    def test_whole_credits(self) -> None:
        assert credits_to_display(Decimal("1500.00")) == "1,500 fichas"

    def test_fractional_credits(self) -> None:
        assert credits_to_display(Decimal("12.5")) == "12.50 fichas"

    def test_zero(self) -> None:
        assert credits_to_display(Decimal("0")) == "0 fichas"

    def test_price_uses_ars_separators(self) -> None:
        assert price_to_display(4500) == "$4.500,00"
        assert price_to_display(18000) == "$18.000,00"
        assert price_to_display(800) == "$800,00"
