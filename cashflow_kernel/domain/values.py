"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the base-currency rate table consumed by the currency
    normalizer, and the ``to_decimal`` coercion shared by every record type.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All monetary amounts and rates are ``Decimal``; floats are converted
      through ``str`` so ``0.1`` stays ``Decimal("0.1")``.
    - Every rate is strictly positive.
    - Every currency code in a table is a registered ISO 4217 code.

Failure modes:
    - InvalidCurrencyError on an unregistered code.
    - InvalidExchangeRateError on a zero, negative or non-numeric rate.
    - ValueError from ``to_decimal`` on non-numeric input.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any

from cashflow_kernel.domain.currency import CurrencyRegistry
from cashflow_kernel.exceptions import InvalidExchangeRateError

_ONE = Decimal("1")


def to_decimal(value: Any) -> Decimal | None:
    """
    Coerce a monetary input to Decimal.

    Postconditions:
        - ``None`` and blank strings map to ``None`` (a missing amount).
        - Decimal is returned unchanged; int, float and str go through
          ``Decimal(str(value))``.

    Raises:
        ValueError: If the value is present but not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


@dataclass(frozen=True)
class CurrencyRateTable:
    """
    Base-currency multipliers for foreign currencies.

    Contract:
        ``rates[code]`` is the number of base-currency units per one unit
        of ``code``.  The base currency itself is implicitly 1 and never
        needs an entry.

    Guarantees:
        - Immutable: ``rates`` is a read-only mapping.
        - Codes are uppercase registered ISO 4217 codes.
        - Rates are positive Decimals.

    Non-goals:
        - Does NOT fetch or refresh rates.
        - Does NOT enforce freshness; ``is_stale`` only reports it.
    """

    base_currency: str
    rates: Mapping[str, Decimal] = field(default_factory=dict)
    last_updated: datetime | None = None

    def __post_init__(self) -> None:
        base = CurrencyRegistry.validate(self.base_currency)
        object.__setattr__(self, "base_currency", base)

        normalized: dict[str, Decimal] = {}
        for code, raw_rate in dict(self.rates).items():
            key = CurrencyRegistry.validate(code)
            try:
                rate = to_decimal(raw_rate)
            except ValueError as e:
                raise InvalidExchangeRateError(key, raw_rate) from e
            if rate is None or rate <= 0:
                raise InvalidExchangeRateError(key, raw_rate)
            normalized[key] = rate
        # A base entry other than 1 would make base amounts change on "conversion"
        if base in normalized and normalized[base] != _ONE:
            raise InvalidExchangeRateError(base, normalized[base])
        object.__setattr__(self, "rates", MappingProxyType(normalized))

    @classmethod
    def of(
        cls,
        base_currency: str,
        last_updated: datetime | None = None,
        **rates: Decimal | str | int,
    ) -> CurrencyRateTable:
        """Factory: ``CurrencyRateTable.of("PKR", USD="280", EUR="300")``."""
        return cls(base_currency=base_currency, rates=rates, last_updated=last_updated)

    def is_base(self, currency_code: str | None) -> bool:
        """True if the code names the base currency (case-insensitive)."""
        if not currency_code:
            return False
        return currency_code.upper().strip() == self.base_currency

    def rate_for(self, currency_code: str | None) -> Decimal | None:
        """Rate for a code, 1 for the base currency, None when not held."""
        if not currency_code:
            return None
        code = currency_code.upper().strip()
        if code == self.base_currency:
            return _ONE
        return self.rates.get(code)

    @property
    def currencies(self) -> tuple[str, ...]:
        """Foreign currency codes held, sorted."""
        return tuple(sorted(self.rates))

    def age(self, as_of: datetime) -> timedelta | None:
        """Time since ``last_updated``; None when the table is undated."""
        if self.last_updated is None:
            return None
        return as_of - self.last_updated

    def is_stale(self, as_of: datetime, max_age: timedelta) -> bool:
        """
        True if the table is older than ``max_age`` at ``as_of``.

        An undated table is always reported stale.
        """
        age = self.age(as_of)
        if age is None:
            return True
        return age > max_age

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k}={v}" for k, v in sorted(self.rates.items()))
        return f"CurrencyRateTable({self.base_currency}; {pairs})"
