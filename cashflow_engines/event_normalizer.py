"""
Module: cashflow_engines.event_normalizer
Responsibility:
    Convert receivables, payables and manual ledger entries into
    ``CashFlowEvent`` values: base-currency amount, derived due date,
    direction, and an audit-friendly description.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cashflow_kernel and sibling engine modules.

Invariants enforced:
    - Each record yields exactly one event or exactly one dropping issue.
      A record kept under the FLAG currency policy yields one event and
      one non-dropping issue.
    - Receivables and Income entries are inflows; payables and Expense
      entries are outflows.
    - No event carries a date that was not successfully parsed.

Failure modes:
    - None raised for bad data; see ``ForecastIssue``.

Usage:
    normalizer = EventNormalizer(rate_table)
    result = normalizer.normalize(
        receivables=receivables, payables=payables, manual_entries=entries,
    )
    result.events, result.issues
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from cashflow_engines.currency_normalizer import Unresolvable, normalize
from cashflow_engines.due_dates import derive_due_date, is_missing
from cashflow_engines.tracer import traced_engine
from cashflow_kernel.domain.policies import UnknownCurrencyPolicy
from cashflow_kernel.domain.records import (
    CashFlowEvent,
    Direction,
    EntryType,
    ForecastIssue,
    IssueKind,
    ManualLedgerEntry,
    Payable,
    Receivable,
    SourceKind,
)
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.event_normalizer")


@dataclass(frozen=True)
class NormalizedEvents:
    """Events derived from the dated sources plus the issues met on the way."""

    events: tuple[CashFlowEvent, ...] = ()
    issues: tuple[ForecastIssue, ...] = ()

    def __add__(self, other: NormalizedEvents) -> NormalizedEvents:
        return NormalizedEvents(
            events=self.events + other.events,
            issues=self.issues + other.issues,
        )


class _Collector:
    """Accumulates events and issues for one source collection."""

    def __init__(self, source_kind: SourceKind):
        self.source_kind = source_kind
        self.events: list[CashFlowEvent] = []
        self.issues: list[ForecastIssue] = []

    def drop(
        self,
        kind: IssueKind,
        record_id: str,
        detail: str,
        field_name: str | None = None,
        value: Any = None,
        expected: bool = False,
    ) -> None:
        self.issues.append(ForecastIssue(
            kind=kind,
            source_kind=self.source_kind,
            record_id=record_id,
            detail=detail,
            dropped=True,
            field_name=field_name,
            value=None if value is None else str(value),
        ))
        log = logger.debug if expected else logger.warning
        log("record_dropped", extra={
            "issue_kind": kind.value,
            "source_kind": self.source_kind.value,
            "record_id": record_id,
            "field_name": field_name,
        })

    def flag_currency(self, record_id: str, currency: str) -> None:
        self.issues.append(ForecastIssue(
            kind=IssueKind.UNKNOWN_CURRENCY,
            source_kind=self.source_kind,
            record_id=record_id,
            detail=f"no rate for {currency}; amount treated as base currency",
            dropped=False,
            field_name="currency",
            value=currency,
        ))
        logger.warning("record_currency_flagged", extra={
            "source_kind": self.source_kind.value,
            "record_id": record_id,
            "currency": currency,
        })

    def result(self) -> NormalizedEvents:
        return NormalizedEvents(events=tuple(self.events), issues=tuple(self.issues))


def _resolve_date(
    collector: _Collector,
    record_id: str,
    field_name: str,
    raw: Any,
    term_days: int = 0,
    expected_missing: bool = False,
) -> date | None:
    """Due date for a record, or None after recording why it was dropped."""
    if is_missing(raw):
        collector.drop(
            IssueKind.MISSING_REQUIRED_FIELD, record_id,
            f"{field_name} is missing", field_name=field_name,
            expected=expected_missing,
        )
        return None
    resolved = derive_due_date(raw, term_days)
    if resolved is None:
        collector.drop(
            IssueKind.UNRESOLVABLE_DATE, record_id,
            f"{field_name} {raw!r} does not resolve to a date", field_name=field_name,
            value=raw,
        )
    return resolved


def _convert(
    collector: _Collector,
    record_id: str,
    amount: Decimal,
    currency: str | None,
    rate_table: CurrencyRateTable,
    policy: UnknownCurrencyPolicy,
) -> tuple[Decimal, bool] | None:
    """(amount_base, flagged), or None after recording an excluded currency."""
    result = normalize(amount, currency, rate_table, policy)
    if isinstance(result, Unresolvable):
        collector.drop(
            IssueKind.UNKNOWN_CURRENCY, record_id,
            f"no rate for {result.currency or 'blank currency'}",
            field_name="currency", value=result.currency,
        )
        return None
    flagged = result.assumed_base and policy is UnknownCurrencyPolicy.FLAG
    if flagged:
        collector.flag_currency(record_id, (currency or "").upper().strip())
    return result.amount_base, flagged


def normalize_receivables(
    receivables: Sequence[Receivable],
    rate_table: CurrencyRateTable,
    policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
) -> NormalizedEvents:
    """
    One Inflow per shipped receivable, due ``payment_term_days`` after shipping.

    Receivables without a ship date are unshipped orders: they are dropped
    as expected (logged at DEBUG) but still reported.
    """
    collector = _Collector(SourceKind.INVOICE)
    for inv in receivables:
        if inv.invoice_amount is None:
            collector.drop(
                IssueKind.MISSING_REQUIRED_FIELD, inv.id,
                "invoice_amount is missing", field_name="invoice_amount",
            )
            continue
        due = _resolve_date(
            collector, inv.id, "ship_date", inv.ship_date,
            inv.payment_term_days, expected_missing=True,
        )
        if due is None:
            continue
        converted = _convert(
            collector, inv.id, inv.invoice_amount, inv.currency, rate_table, policy,
        )
        if converted is None:
            continue
        amount_base, flagged = converted
        collector.events.append(CashFlowEvent(
            id=inv.id,
            date=due,
            direction=Direction.INFLOW,
            source_kind=SourceKind.INVOICE,
            description=f"Export Inv ({inv.job_reference})",
            amount_base=amount_base,
            original_amount=inv.invoice_amount,
            original_currency=inv.currency,
            job_reference=inv.job_reference,
            currency_flagged=flagged,
        ))
    return collector.result()


def normalize_payables(
    payables: Sequence[Payable],
    rate_table: CurrencyRateTable,
    policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
) -> NormalizedEvents:
    """One Outflow per payable, due ``payment_term_days`` after PO issue."""
    collector = _Collector(SourceKind.PO)
    for po in payables:
        if po.po_amount is None:
            collector.drop(
                IssueKind.MISSING_REQUIRED_FIELD, po.id,
                "po_amount is missing", field_name="po_amount",
            )
            continue
        due = _resolve_date(
            collector, po.id, "po_issue_date", po.po_issue_date, po.payment_term_days,
        )
        if due is None:
            continue
        converted = _convert(
            collector, po.id, po.po_amount, po.currency, rate_table, policy,
        )
        if converted is None:
            continue
        amount_base, flagged = converted
        collector.events.append(CashFlowEvent(
            id=po.id,
            date=due,
            direction=Direction.OUTFLOW,
            source_kind=SourceKind.PO,
            description=f"PO: {po.supplier_name}",
            amount_base=amount_base,
            original_amount=po.po_amount,
            original_currency=po.currency,
            job_reference=po.job_reference,
            currency_flagged=flagged,
        ))
    return collector.result()


def normalize_manual_entries(
    entries: Sequence[ManualLedgerEntry],
    base_currency: str,
) -> NormalizedEvents:
    """Manual entries pass through unconverted; they are already base currency."""
    collector = _Collector(SourceKind.MANUAL)
    for entry in entries:
        if entry.amount_base is None:
            collector.drop(
                IssueKind.MISSING_REQUIRED_FIELD, entry.id,
                "amount_base is missing", field_name="amount_base",
            )
            continue
        when = _resolve_date(
            collector, entry.id, "transaction_date", entry.transaction_date,
        )
        if when is None:
            continue
        direction = (
            Direction.INFLOW if entry.entry_type is EntryType.INCOME
            else Direction.OUTFLOW
        )
        collector.events.append(CashFlowEvent(
            id=entry.id,
            date=when,
            direction=direction,
            source_kind=SourceKind.MANUAL,
            description=f"{entry.category}: {entry.description}",
            amount_base=entry.amount_base,
            original_currency=base_currency,
        ))
    return collector.result()


class EventNormalizer:
    """
    Normalize all dated sources against one rate table.

    Contract:
        Pure -- no I/O, no clock.  The rate table and policy are fixed at
        construction so one instance describes one projection.
    Guarantees:
        - Output order is receivables, then payables, then manual entries,
          each in input order.
    """

    def __init__(
        self,
        rate_table: CurrencyRateTable,
        policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
    ):
        self.rate_table = rate_table
        self.policy = policy

    @traced_engine(
        "event_normalizer", "1.0",
        fingerprint_fields=("receivables", "payables", "manual_entries"),
    )
    def normalize(
        self,
        receivables: Sequence[Receivable] = (),
        payables: Sequence[Payable] = (),
        manual_entries: Sequence[ManualLedgerEntry] = (),
    ) -> NormalizedEvents:
        result = (
            normalize_receivables(receivables, self.rate_table, self.policy)
            + normalize_payables(payables, self.rate_table, self.policy)
            + normalize_manual_entries(manual_entries, self.rate_table.base_currency)
        )
        logger.info("events_normalized", extra={
            "receivable_count": len(receivables),
            "payable_count": len(payables),
            "manual_entry_count": len(manual_entries),
            "event_count": len(result.events),
            "issue_count": len(result.issues),
            "policy": self.policy.value,
        })
        return result
