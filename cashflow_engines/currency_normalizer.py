"""
Module: cashflow_engines.currency_normalizer
Responsibility:
    Convert a foreign-currency amount into the base currency using the
    active ``CurrencyRateTable``, with an explicit outcome for currencies
    the table does not hold.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cashflow_kernel.

Invariants enforced:
    - Base-currency amounts are returned unchanged (multiplier exactly 1).
    - Conversion is a single Decimal multiplication, so it is linear:
      normalize(2x) == 2 * normalize(x).
    - A rate-table miss never fails silently unless the caller chose
      ``UnknownCurrencyPolicy.TREAT_AS_BASE``.

Failure modes:
    - None raised.  A miss yields ``Unresolvable`` (EXCLUDE) or a
      ``Normalized`` result with ``assumed_base=True`` (FLAG, TREAT_AS_BASE).

Usage:
    from cashflow_engines.currency_normalizer import normalize, Normalized

    result = normalize(Decimal("1000"), "USD", rates)
    if isinstance(result, Normalized):
        amount_base = result.amount_base
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from cashflow_kernel.domain.policies import UnknownCurrencyPolicy
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.currency_normalizer")

_ONE = Decimal("1")


@dataclass(frozen=True)
class Normalized:
    """Amount successfully expressed in the base currency."""

    amount_base: Decimal
    rate: Decimal
    assumed_base: bool = False


@dataclass(frozen=True)
class Unresolvable:
    """No rate for ``currency``; the amount cannot be placed in base currency."""

    currency: str
    reason: str = "no rate in table"


ConversionResult = Normalized | Unresolvable


def normalize(
    amount: Decimal,
    currency_code: str | None,
    rate_table: CurrencyRateTable,
    policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
) -> ConversionResult:
    """
    Convert ``amount`` in ``currency_code`` to the base currency.

    Preconditions:
        - ``amount`` is a Decimal.
    Postconditions:
        - Base currency -> ``Normalized(amount, 1)`` with the exact input.
        - Known currency -> ``Normalized(amount * rate, rate)``.
        - Unknown currency -> per ``policy``: ``Normalized(amount, 1,
          assumed_base=True)`` for TREAT_AS_BASE and FLAG, ``Unresolvable``
          for EXCLUDE.  A missing code counts as unknown.
    """
    if rate_table.is_base(currency_code):
        return Normalized(amount_base=amount, rate=_ONE)

    rate = rate_table.rate_for(currency_code)
    if rate is not None:
        return Normalized(amount_base=amount * rate, rate=rate)

    code = (currency_code or "").upper().strip()
    if policy is UnknownCurrencyPolicy.EXCLUDE:
        logger.debug("currency_unresolvable", extra={
            "currency": code,
            "base_currency": rate_table.base_currency,
        })
        return Unresolvable(currency=code)

    logger.debug("currency_assumed_base", extra={
        "currency": code,
        "base_currency": rate_table.base_currency,
        "policy": policy.value,
    })
    return Normalized(amount_base=amount, rate=_ONE, assumed_base=True)


def normalize_amount(
    amount: Decimal,
    currency_code: str | None,
    rate_table: CurrencyRateTable,
    policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
) -> Decimal | None:
    """Base-currency amount, or None when the currency is unresolvable."""
    result = normalize(amount, currency_code, rate_table, policy)
    if isinstance(result, Unresolvable):
        return None
    return result.amount_base
