"""
Tests for currency validation and the base-currency rate table.

Covers:
- ISO 4217 registry: validation, normalization, precision
- CurrencyRateTable: construction, lookups, staleness
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cashflow_kernel.domain.currency import CurrencyRegistry
from cashflow_kernel.domain.values import CurrencyRateTable, to_decimal
from cashflow_kernel.exceptions import InvalidCurrencyError, InvalidExchangeRateError


class TestCurrencyRegistry:
    """ISO 4217 enforcement for the codes the business trades in."""

    def test_valid_currency_codes_accepted(self):
        for code in ["PKR", "USD", "EUR", "GBP", "AED", "CNY"]:
            assert CurrencyRegistry.validate(code) == code

    def test_lowercase_and_whitespace_normalized(self):
        assert CurrencyRegistry.validate("usd") == "USD"
        assert CurrencyRegistry.validate(" pkr ") == "PKR"

    @pytest.mark.parametrize("code", ["XXY", "ABC", "123", "US", "USDD", "", "X"])
    def test_invalid_codes_rejected(self, code):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.validate(code)

    def test_validate_raises_typed_error(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            CurrencyRegistry.validate("XXY")
        assert exc_info.value.code == "INVALID_CURRENCY"
        assert exc_info.value.currency == "XXY"

    def test_validate_rejects_non_string(self):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.validate(None)

    def test_decimal_places(self):
        assert CurrencyRegistry.get_decimal_places("PKR") == 2
        assert CurrencyRegistry.get_decimal_places("JPY") == 0
        assert CurrencyRegistry.get_decimal_places("KWD") == 3

    def test_unknown_code_uses_default_places(self):
        assert CurrencyRegistry.get_decimal_places("ZZZ") == 2

    def test_quantize_rounds_half_up(self):
        assert CurrencyRegistry.quantize(Decimal("10.005"), "PKR") == Decimal("10.01")
        assert CurrencyRegistry.quantize(Decimal("10.5"), "JPY") == Decimal("11")
        assert CurrencyRegistry.quantize(Decimal("1.2345"), "BHD") == Decimal("1.235")


class TestToDecimal:
    """Monetary coercion shared by every record type."""

    def test_none_and_blank_are_missing(self):
        assert to_decimal(None) is None
        assert to_decimal("   ") is None

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self):
        assert to_decimal(280) == Decimal("280")
        assert to_decimal(" 12.50 ") == Decimal("12.50")

    def test_decimal_returned_unchanged(self):
        value = Decimal("3.14")
        assert to_decimal(value) is value

    @pytest.mark.parametrize("value", ["abc", True, "NaN", "Infinity"])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestCurrencyRateTable:
    """Base-currency multipliers."""

    def test_of_factory_normalizes_rates(self):
        table = CurrencyRateTable.of("pkr", USD="280", EUR=300)
        assert table.base_currency == "PKR"
        assert table.rates["USD"] == Decimal("280")
        assert table.rates["EUR"] == Decimal("300")

    def test_lowercase_rate_codes_normalized(self):
        table = CurrencyRateTable(base_currency="PKR", rates={"usd": "280"})
        assert table.rate_for("USD") == Decimal("280")

    def test_rates_are_read_only(self):
        table = CurrencyRateTable.of("PKR", USD="280")
        with pytest.raises(TypeError):
            table.rates["EUR"] = Decimal("300")

    def test_base_rate_is_one(self):
        table = CurrencyRateTable.of("PKR", USD="280")
        assert table.rate_for("PKR") == Decimal("1")
        assert table.rate_for("pkr") == Decimal("1")
        assert table.is_base("pkr")

    def test_missing_rate_is_none(self):
        table = CurrencyRateTable.of("PKR", USD="280")
        assert table.rate_for("GBP") is None
        assert table.rate_for(None) is None
        assert table.rate_for("") is None

    def test_explicit_base_entry_of_one_allowed(self):
        table = CurrencyRateTable.of("PKR", PKR="1", USD="280")
        assert table.rate_for("PKR") == Decimal("1")

    def test_base_entry_other_than_one_rejected(self):
        with pytest.raises(InvalidExchangeRateError):
            CurrencyRateTable.of("PKR", PKR="2")

    @pytest.mark.parametrize("rate", ["0", "-5", "abc"])
    def test_non_positive_or_non_numeric_rate_rejected(self, rate):
        with pytest.raises(InvalidExchangeRateError) as exc_info:
            CurrencyRateTable.of("PKR", USD=rate)
        assert exc_info.value.code == "INVALID_EXCHANGE_RATE"
        assert exc_info.value.currency == "USD"

    def test_unregistered_code_rejected(self):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRateTable(base_currency="PKR", rates={"XXY": "1.5"})

    def test_invalid_base_rejected(self):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRateTable(base_currency="RUPEE")

    def test_currencies_sorted(self):
        table = CurrencyRateTable.of("PKR", USD="280", EUR="300", AED="76")
        assert table.currencies == ("AED", "EUR", "USD")

    def test_repr_lists_rates(self):
        table = CurrencyRateTable.of("PKR", USD="280")
        assert repr(table) == "CurrencyRateTable(PKR; USD=280)"


class TestRateTableStaleness:
    """Staleness is reported, never enforced."""

    def setup_method(self):
        self.updated = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        self.table = CurrencyRateTable.of("PKR", last_updated=self.updated, USD="280")

    def test_age(self):
        as_of = self.updated + timedelta(hours=5)
        assert self.table.age(as_of) == timedelta(hours=5)

    def test_fresh_within_max_age(self):
        as_of = self.updated + timedelta(hours=23)
        assert self.table.is_stale(as_of, timedelta(hours=24)) is False

    def test_stale_beyond_max_age(self):
        as_of = self.updated + timedelta(hours=25)
        assert self.table.is_stale(as_of, timedelta(hours=24)) is True

    def test_undated_table_is_stale(self):
        table = CurrencyRateTable.of("PKR", USD="280")
        assert table.age(self.updated) is None
        assert table.is_stale(self.updated, timedelta(days=365)) is True
