"""Tests for currency symbols and compact amounts."""

import pytest
from decimal import Decimal

from wallet_ledger.formatting import currency_symbol, format_compact
from wallet_ledger.models.ledger import Currency


class TestCurrencySymbol:
    """Tests for currency_symbol."""

    @pytest.mark.parametrize(
        "code, expected",
        [("USD", "$"), ("gbp", "£"), (Currency.EUR, "€"), ("IRR", "﷼")],
    )
    def test_known_codes(self, code, expected):
        """Test symbols of supported currencies."""
        assert currency_symbol(code) == expected

    def test_unknown_code(self):
        """Test that unknown codes are returned as-is."""
        assert currency_symbol("chf") == "CHF"

    def test_none(self):
        """Test that a missing code has no symbol."""
        assert currency_symbol(None) == ""


class TestFormatCompact:
    """Tests for format_compact."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (0, "$0"),
            (Decimal("1234.5"), "$1,234.5"),
            (Decimal("999.1234"), "$999.123"),
            ("12,000", "$12,000"),
            (1_500_000, "$1.5M"),
            (2_345_678_901, "$2.346B"),
            (Decimal("-1500000"), "-$1.5M"),
            (Decimal("-42.10"), "-$42.1"),
        ],
    )
    def test_formats(self, amount, expected):
        """Test grouping, suffixes and sign placement."""
        assert format_compact(amount, "$") == expected

    def test_without_symbol(self):
        """Test formatting without a symbol."""
        assert format_compact(1_000_000) == "1.0M"

    @pytest.mark.parametrize("amount", ["abc", None, "NaN"])
    def test_non_numeric(self, amount):
        """Test that non-numeric input renders as zero."""
        assert format_compact(amount, "€") == "€0"
