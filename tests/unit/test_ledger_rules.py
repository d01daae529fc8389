"""Tests for crm_ledger.domain.rules: pre-write validation and its precedence."""

from decimal import Decimal

import pytest

from src.crm_common.errors import InvalidAmountError, MissingReceiptError, UnauthorizedError
from src.crm_ledger.domain.rules import (
    MAX_CREDITS,
    check_acting_agent,
    check_amount,
    check_receipt,
    validate_ledger_request,
)
from src.crm_profile.domain.models import Profile


def _profile(role: str) -> Profile:
    return Profile(id="p-1", user_id="u-1", role=role)


class TestCheckActingAgent:
    def test_agent_passes(self) -> None:
        check_acting_agent(_profile("agent"))

    @pytest.mark.parametrize("role", ["client", "admin"])
    def test_non_agent_rejected(self, role: str) -> None:
        with pytest.raises(UnauthorizedError):
            check_acting_agent(_profile(role))


class TestCheckAmount:
    def test_positive_amount_is_quantized(self) -> None:
        assert check_amount(500) == Decimal("500.00")
        assert check_amount("0.01") == Decimal("0.01")

    @pytest.mark.parametrize("amount", [None, 0, -5, "0", "-0.01", "abc", "NaN"])
    def test_invalid_amounts(self, amount: object) -> None:
        with pytest.raises(InvalidAmountError):
            check_amount(amount)  # type: ignore[arg-type]

    def test_amount_rounding_to_zero_is_rejected(self) -> None:
        with pytest.raises(InvalidAmountError):
            check_amount("0.004")

    @pytest.mark.parametrize("amount", ["0.005", "10.005", Decimal("1.999")])
    def test_sub_cent_amount_is_rejected_not_rounded(self, amount: object) -> None:
        with pytest.raises(InvalidAmountError):
            check_amount(amount)  # type: ignore[arg-type]

    def test_trailing_zeros_are_not_sub_cent(self) -> None:
        assert check_amount("12.500") == Decimal("12.50")

    def test_column_maximum_is_accepted(self) -> None:
        assert check_amount(MAX_CREDITS) == MAX_CREDITS

    @pytest.mark.parametrize("amount", ["1e13", "1000000000000", "1e30", Decimal("1E+30")])
    def test_amount_beyond_column_range_is_rejected(self, amount: object) -> None:
        with pytest.raises(InvalidAmountError):
            check_amount(amount)  # type: ignore[arg-type]


class TestCheckReceipt:
    def test_receipt_is_stripped(self) -> None:
        assert check_receipt("  R-1  ") == "R-1"

    @pytest.mark.parametrize("receipt", [None, "", "   "])
    def test_missing_receipt(self, receipt: str | None) -> None:
        with pytest.raises(MissingReceiptError):
            check_receipt(receipt)


class TestPrecedence:
    def test_role_checked_before_amount(self) -> None:
        with pytest.raises(UnauthorizedError):
            validate_ledger_request(_profile("client"), -1, "")

    def test_amount_checked_before_receipt(self) -> None:
        with pytest.raises(InvalidAmountError):
            validate_ledger_request(_profile("agent"), 0, "")

    def test_valid_request(self) -> None:
        value, receipt = validate_ledger_request(_profile("agent"), "250", " R-2 ")
        assert value == Decimal("250.00")
        assert receipt == "R-2"
