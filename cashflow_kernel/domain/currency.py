"""Currency -- ISO 4217 registry for the currencies the business trades in."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from cashflow_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str


class CurrencyRegistry:
    """Registry of ISO 4217 currencies accepted in rate tables and records."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Base and principal invoicing currencies
        "PKR": CurrencyInfo("PKR", 2, "Pakistani Rupee"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        # Sourcing and buyer-market currencies
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar"),
        "BDT": CurrencyInfo("BDT", 2, "Bangladeshi Taka"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        "DKK": CurrencyInfo("DKK", 2, "Danish Krone"),
        "HKD": CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "LKR": CurrencyInfo("LKR", 2, "Sri Lankan Rupee"),
        "NOK": CurrencyInfo("NOK", 2, "Norwegian Krone"),
        "SAR": CurrencyInfo("SAR", 2, "Saudi Riyal"),
        "SEK": CurrencyInfo("SEK", 2, "Swedish Krona"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira"),
        # Zero decimal currencies
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong"),
        # Three decimal currencies
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
    }

    # Used for display rounding of codes outside the registry
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls._CURRENCIES.get(code.upper().strip()) if isinstance(code, str) else None
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def quantize(cls, amount: Decimal, code: str) -> Decimal:
        """Round an amount to the currency's precision for display."""
        places = cls.get_decimal_places(code)
        exponent = Decimal("1") if places == 0 else Decimal(1).scaleb(-places)
        return amount.quantize(exponent, rounding=ROUND_HALF_UP)

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise InvalidCurrencyError(str(code))

        normalized = code.upper().strip()
        if len(normalized) != 3 or normalized not in cls._CURRENCIES:
            raise InvalidCurrencyError(code)

        return normalized

