#!/usr/bin/env python3
"""Tests for core currency utilities."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from allocations.core.currency import (
    CentDiffTarget,
    DecimalPolicy,
    divide_amount,
    format_amount,
    multiply_amount,
    round_to,
    subtract_amount,
    sum_amounts,
    to_amount,
    truncate_to,
    with_sign_of,
)


class TestToAmount:
    """Test normalization of loose numeric input."""

    @pytest.mark.currency
    def test_parses_formatted_strings(self):
        """Test thousands separators and currency symbols are stripped."""
        assert to_amount("1,234.50") == Decimal("1234.50")
        assert to_amount("$12.34") == Decimal("12.34")
        assert to_amount(" 7 ") == Decimal("7")
        assert to_amount("-45.99") == Decimal("-45.99")

    @pytest.mark.currency
    def test_numeric_inputs(self):
        """Test ints, floats and Decimals."""
        assert to_amount(100) == Decimal("100")
        assert to_amount(1.005) == Decimal("1.005")  # no binary float noise
        assert to_amount(Decimal("66.645")) == Decimal("66.645")

    @pytest.mark.currency
    def test_invalid_input_is_zero(self):
        """Test missing, empty and non-finite values coerce to zero."""
        assert to_amount(None) == Decimal("0")
        assert to_amount("") == Decimal("0")
        assert to_amount("n/a") == Decimal("0")
        assert to_amount("nan") == Decimal("0")
        assert to_amount("inf") == Decimal("0")
        assert to_amount(Decimal("NaN")) == Decimal("0")
        assert to_amount(True) == Decimal("0")
        assert to_amount([1, 2]) == Decimal("0")


class TestRounding:
    """Test half-away-from-zero rounding and arithmetic helpers."""

    @pytest.mark.currency
    def test_round_half_away_from_zero(self):
        """Test midpoints round away from zero for both signs."""
        assert round_to(Decimal("1.005"), 2) == Decimal("1.01")
        assert round_to(Decimal("-1.005"), 2) == Decimal("-1.01")
        assert round_to(Decimal("66.645"), 2) == Decimal("66.65")
        assert round_to(Decimal("2.5"), 0) == Decimal("3")
        assert round_to(Decimal("1.0049"), 2) == Decimal("1.00")

    @pytest.mark.currency
    def test_round_to_fixes_exponent(self):
        """Test results carry exactly the requested decimal places."""
        assert str(round_to(Decimal("5"), 2)) == "5.00"
        assert str(round_to(Decimal("1.23456789"), 6)) == "1.234568"

    @pytest.mark.currency
    def test_truncate_to_never_rounds_up(self):
        """Test truncation cuts toward zero at the requested places."""
        assert truncate_to(Decimal("10.005"), 2) == Decimal("10.00")
        assert truncate_to(Decimal("20.009"), 2) == Decimal("20.00")
        assert truncate_to(Decimal("-1.239"), 2) == Decimal("-1.23")
        assert str(truncate_to(Decimal("0.009"), 2)) == "0.00"
        assert DecimalPolicy(amount_decimals=0).truncate_amount(Decimal("9.99")) == Decimal("9")

    @pytest.mark.currency
    def test_multiply_amount(self):
        """Test amount × rate conversions."""
        assert multiply_amount(Decimal("100"), Decimal("1.333"), 2) == Decimal("133.30")
        assert multiply_amount(Decimal("50"), Decimal("1.333"), 2) == Decimal("66.65")
        assert multiply_amount(Decimal("3"), Decimal("1.005"), 2) == Decimal("3.02")

    @pytest.mark.currency
    def test_divide_amount(self):
        """Test division, including the non-positive divisor guard."""
        assert divide_amount(Decimal("500"), Decimal("1.25"), 2) == Decimal("400.00")
        assert divide_amount(Decimal("100"), Decimal("3"), 2) == Decimal("33.33")
        assert divide_amount(Decimal("100"), Decimal("0"), 2) == Decimal("0.00")
        assert divide_amount(Decimal("100"), Decimal("-1"), 2) == Decimal("0.00")

    @pytest.mark.currency
    def test_subtract_and_sum(self):
        """Test the remaining arithmetic helpers round their results."""
        assert subtract_amount(Decimal("3.02"), Decimal("3.03"), 2) == Decimal("-0.01")
        assert sum_amounts([Decimal("1.01"), Decimal("1.01"), Decimal("1.01")], 2) == Decimal("3.03")
        assert sum_amounts([], 2) == Decimal("0.00")

    @pytest.mark.currency
    def test_with_sign_of(self):
        """Test magnitude takes the sign of the reference."""
        assert with_sign_of(Decimal("5"), Decimal("-1")) == Decimal("-5")
        assert with_sign_of(Decimal("-5"), Decimal("10")) == Decimal("5")
        assert with_sign_of(Decimal("-5"), Decimal("0")) == Decimal("5")

    @pytest.mark.currency
    def test_format_amount(self):
        """Test display formatting."""
        assert format_amount(Decimal("1234.5"), 2) == "1,234.50"
        assert format_amount(Decimal("-0.005"), 2) == "-0.01"
        assert format_amount(Decimal("12"), 0) == "12"


class TestDecimalPolicy:
    """Test the per-amount-class rounding policy."""

    @pytest.mark.currency
    def test_defaults(self):
        """Test default precision and cent diff target."""
        policy = DecimalPolicy()
        assert policy.amount_decimals == 2
        assert policy.local_amount_decimals == 2
        assert policy.exchange_rate_decimals == 6
        assert policy.cent_diff_target == CentDiffTarget.LAST

    @pytest.mark.currency
    def test_round_per_class(self):
        """Test each amount class rounds with its own precision."""
        policy = DecimalPolicy(amount_decimals=0, local_amount_decimals=3, exchange_rate_decimals=4)
        assert policy.round_amount(Decimal("10.5")) == Decimal("11")
        assert policy.round_local(Decimal("1.2345")) == Decimal("1.235")
        assert policy.round_rate(Decimal("1.333333")) == Decimal("1.3333")

    @pytest.mark.currency
    def test_rejects_negative_precision(self):
        """Test invalid precision is rejected at construction."""
        with pytest.raises(ValueError, match="amount_decimals"):
            DecimalPolicy(amount_decimals=-1)

    @pytest.mark.currency
    def test_target_accepts_string(self):
        """Test the cent diff target can be given by value."""
        policy = DecimalPolicy(cent_diff_target="largest")
        assert policy.cent_diff_target == CentDiffTarget.LARGEST

        with pytest.raises(ValueError):
            DecimalPolicy(cent_diff_target="first")

    @pytest.mark.currency
    def test_is_immutable(self):
        """Test the policy cannot be changed after construction."""
        policy = DecimalPolicy()
        with pytest.raises(FrozenInstanceError):
            policy.amount_decimals = 4

    @pytest.mark.currency
    def test_from_dict_wire_names(self):
        """Test the settings dict uses the UI key names."""
        policy = DecimalPolicy.from_dict({"amtDec": 3, "locAmtDec": "2", "exhRateDec": 4, "centDiffTarget": "largest"})
        assert policy.amount_decimals == 3
        assert policy.local_amount_decimals == 2
        assert policy.exchange_rate_decimals == 4
        assert policy.cent_diff_target == CentDiffTarget.LARGEST

    @pytest.mark.currency
    def test_from_dict_defaults(self):
        """Test missing settings fall back to defaults."""
        assert DecimalPolicy.from_dict(None) == DecimalPolicy()
        assert DecimalPolicy.from_dict({"amount_decimals": 0}) == DecimalPolicy(amount_decimals=0)

    @pytest.mark.currency
    def test_to_dict(self):
        """Test conversion back to the wire format."""
        policy = DecimalPolicy(amount_decimals=3)
        assert policy.to_dict() == {"amtDec": 3, "locAmtDec": 2, "exhRateDec": 6, "centDiffTarget": "last"}
        assert DecimalPolicy.from_dict(policy.to_dict()) == policy
