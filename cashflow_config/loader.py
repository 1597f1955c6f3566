"""
Configuration Loader (``cashflow_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into typed objects: ``ForecastSettings``,
``CurrencyRateTable`` and the four source collections.  The sources file
is how the reporting script (and tests) feed the engine without the
dashboard's forms.

Invariants enforced
-------------------
* Every parsed object is an immutable kernel / schema type.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  settings identity and change detection.
* Unquoted dates are loaded as text (no YAML timestamp resolution): the
  engine, not the loader, decides that an unparseable date drops a record.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in a record  -> ``KeyError`` propagates.
* Invalid settings  -> ``InvalidSettingError``.
* Invalid rates or codes  -> ``InvalidExchangeRateError`` /
  ``InvalidCurrencyError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from cashflow_config.schema import ForecastSettings
from cashflow_engines.projection import CashFlowSources
from cashflow_kernel.domain.records import (
    ManualLedgerEntry,
    Payable,
    Receivable,
    RecurringOverhead,
)
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.logging_config import get_logger

logger = get_logger("config.loader")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _TextDateLoader(yaml.SafeLoader):
    """SafeLoader that leaves unquoted dates as strings."""


# Record dates are parsed by the engine; an impossible date such as
# 2025-02-30 must drop one record, not abort the whole load.
_TextDateLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.load(f, Loader=_TextDateLoader) or {}


def parse_datetime(value: Any) -> datetime | None:
    """Parse a timestamp from YAML (datetime, date, or ISO string)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"Cannot parse timestamp from {value!r}")


def parse_settings(data: dict[str, Any]) -> ForecastSettings:
    """Parse ``ForecastSettings`` from the ``settings`` mapping."""
    return ForecastSettings.from_dict(dict(data))


def parse_rate_table(data: dict[str, Any], base_currency: str) -> CurrencyRateTable:
    """
    Parse a rate table from ``{"rates": {...}, "last_updated": ...}``.

    Rates are read through ``str`` so YAML floats such as 280.5 stay exact.
    """
    rates = {code: str(rate) for code, rate in (data.get("rates") or {}).items()}
    return CurrencyRateTable(
        base_currency=data.get("base_currency", base_currency),
        rates=rates,
        last_updated=parse_datetime(data.get("last_updated")),
    )


def _amount(value: Any) -> Any:
    # YAML floats go through str so Decimal sees the written digits
    return str(value) if isinstance(value, float) else value


def parse_receivable(data: dict[str, Any]) -> Receivable:
    return Receivable(
        id=str(data["id"]),
        job_reference=str(data.get("job_reference", "")),
        style_reference=str(data.get("style_reference", "")),
        invoice_amount=_amount(data.get("invoice_amount")),
        currency=data.get("currency"),
        ship_date=data.get("ship_date"),
        payment_term_days=int(data.get("payment_term_days", 0)),
    )


def parse_payable(data: dict[str, Any]) -> Payable:
    return Payable(
        id=str(data["id"]),
        job_reference=str(data.get("job_reference", "")),
        supplier_name=str(data.get("supplier_name", "")),
        po_amount=_amount(data.get("po_amount")),
        currency=data.get("currency"),
        po_issue_date=data.get("po_issue_date"),
        payment_term_days=int(data.get("payment_term_days", 0)),
    )


def parse_manual_entry(data: dict[str, Any]) -> ManualLedgerEntry:
    return ManualLedgerEntry(
        id=str(data["id"]),
        entry_type=data["entry_type"],
        category=str(data.get("category", "General")),
        description=str(data.get("description", "")),
        amount_base=_amount(data.get("amount_base")),
        transaction_date=data.get("transaction_date"),
    )


def parse_overhead(data: dict[str, Any]) -> RecurringOverhead:
    return RecurringOverhead(
        id=str(data["id"]),
        name=str(data["name"]),
        amount_base=_amount(data["amount_base"]),
        recurrence=data["recurrence"],
        start_date=data.get("start_date"),
    )


def parse_sources(data: dict[str, Any]) -> CashFlowSources:
    """Parse the four source collections from a sources document."""
    sources = CashFlowSources.of(
        receivables=[parse_receivable(r) for r in data.get("receivables") or ()],
        payables=[parse_payable(p) for p in data.get("payables") or ()],
        manual_entries=[parse_manual_entry(m) for m in data.get("manual_entries") or ()],
        overheads=[parse_overhead(o) for o in data.get("overheads") or ()],
    )
    logger.info("sources_parsed", extra={
        "receivable_count": len(sources.receivables),
        "payable_count": len(sources.payables),
        "manual_entry_count": len(sources.manual_entries),
        "overhead_count": len(sources.overheads),
    })
    return sources


def load_sources(
    path: Path,
    base_currency: str = "PKR",
) -> tuple[CashFlowSources, CurrencyRateTable | None]:
    """
    Load a sources file.

    Returns:
        The source collections and, when the file has a ``currency_rates``
        section, its rate table (None otherwise).  The section may name its
        own ``base_currency``; ``base_currency`` is the fallback.
    """
    data = load_yaml_file(path)
    sources = parse_sources(data)
    rates_section = data.get("currency_rates")
    rate_table = None
    if rates_section is not None:
        rate_table = parse_rate_table(rates_section, base_currency)
    return sources, rate_table


def compute_checksum(settings: ForecastSettings) -> str:
    """Deterministic SHA-256 of the settings' canonical JSON form."""
    canonical = json.dumps(settings.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
