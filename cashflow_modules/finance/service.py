"""
cashflow_modules.finance.service
================================

Responsibility:
    In-memory ledger workspace behind the finance screens.  Owns the four
    source collections, validates operator input at the point of entry,
    and re-derives the full projection through ``CashFlowEngine`` on every
    read.  This module is thin glue -- it contains no forecasting logic.

Architecture:
    Module layer (cashflow_modules).  May import cashflow_kernel,
    cashflow_engines and cashflow_config.  Nothing below imports it.

Invariants enforced:
    - Record ids are unique within each collection.
    - Manual entries reaching the engine always have a positive amount and
      a non-blank description (rejected here otherwise).
    - No cached projection: every read recomputes from current sources.
    - Clock is injected; ``datetime.now()`` is never called directly.

Failure modes:
    - InvalidManualEntryError for rejected operator input.
    - DuplicateRecordError / RecordNotFoundError for id conflicts.

Usage::

    service = FinanceLedgerService(settings, rate_table, clock)
    service.add_receivable(Receivable(...))
    service.record_manual_entry("Expense", Decimal("15000"), "Generator fuel")
    projection = service.project()
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from cashflow_config.schema import ForecastSettings
from cashflow_engines.currency_normalizer import normalize_amount
from cashflow_engines.due_dates import derive_due_date, is_missing, parse_date
from cashflow_engines.projection import (
    CashFlowEngine,
    CashFlowProjection,
    CashFlowSources,
)
from cashflow_kernel.domain.clock import Clock, SystemClock
from cashflow_kernel.domain.records import (
    CashFlowEvent,
    EntryType,
    ManualLedgerEntry,
    Payable,
    Receivable,
    Recurrence,
    RecurringOverhead,
    SourceKind,
    coerce_enum,
)
from cashflow_kernel.domain.values import CurrencyRateTable, to_decimal
from cashflow_kernel.exceptions import (
    DuplicateRecordError,
    InvalidManualEntryError,
    RecordNotFoundError,
)
from cashflow_kernel.logging_config import LogContext, get_logger
from cashflow_modules.finance.models import ALL_JOBS, AuditLine

logger = get_logger("modules.finance.service")


def _positive_amount(value: Any) -> Decimal:
    try:
        amount = to_decimal(value)
    except ValueError:
        raise InvalidManualEntryError("amount", f"{value!r} is not a number") from None
    if amount is None:
        raise InvalidManualEntryError("amount", "amount is required")
    if amount <= 0:
        raise InvalidManualEntryError("amount", "amount must be positive")
    return amount


class FinanceLedgerService:
    """
    Owns the finance sources and serves projections over them.

    Contract:
        Operator-facing mutators validate and raise typed errors; readers
        never raise for data quality (the engine reports issues instead).

    Guarantees:
        - ``project()`` reflects every mutation made before the call.
        - Listing methods return tuples; callers cannot mutate held state.

    Non-goals:
        - No persistence: collections live for the lifetime of the instance.
    """

    def __init__(
        self,
        settings: ForecastSettings | None = None,
        rate_table: CurrencyRateTable | None = None,
        clock: Clock | None = None,
        engine: CashFlowEngine | None = None,
    ):
        self._settings = settings or ForecastSettings.with_defaults()
        self._rate_table = rate_table or CurrencyRateTable(
            base_currency=self._settings.base_currency,
        )
        self._clock = clock or SystemClock()
        self._engine = engine or CashFlowEngine()

        self._receivables: dict[str, Receivable] = {}
        self._payables: dict[str, Payable] = {}
        self._manual_entries: dict[str, ManualLedgerEntry] = {}
        self._overheads: dict[str, RecurringOverhead] = {}

    @property
    def settings(self) -> ForecastSettings:
        return self._settings

    @property
    def rate_table(self) -> CurrencyRateTable:
        return self._rate_table

    # =========================================================================
    # Sources
    # =========================================================================

    def add_receivable(self, receivable: Receivable) -> Receivable:
        """Hold a receivable raised by the export-invoice screens."""
        if receivable.id in self._receivables:
            raise DuplicateRecordError("Receivable", receivable.id)
        self._receivables[receivable.id] = receivable
        logger.info("receivable_added", extra={
            "record_id": receivable.id,
            "job_reference": receivable.job_reference,
        })
        return receivable

    def add_payable(self, payable: Payable) -> Payable:
        """Hold a payable raised by the purchasing screens."""
        if payable.id in self._payables:
            raise DuplicateRecordError("Payable", payable.id)
        self._payables[payable.id] = payable
        logger.info("payable_added", extra={
            "record_id": payable.id,
            "job_reference": payable.job_reference,
        })
        return payable

    def record_manual_entry(
        self,
        entry_type: EntryType | str,
        amount: Decimal | str | int,
        description: str,
        category: str | None = None,
        transaction_date: date | str | None = None,
    ) -> ManualLedgerEntry:
        """
        Validate and record an operator income/expense entry.

        Args:
            entry_type: "Income" or "Expense".
            amount: Positive amount in base currency.
            description: Free text; required.
            category: Defaults to ``settings.default_manual_category``.
            transaction_date: Defaults to the clock's today.

        Raises:
            InvalidManualEntryError: On a missing/non-positive amount, a blank
                description, an unknown entry type, or an unparseable date.
        """
        try:
            kind = coerce_enum(EntryType, entry_type)
        except ValueError:
            raise InvalidManualEntryError(
                "entry_type", f"{entry_type!r} is not Income or Expense",
            ) from None

        value = _positive_amount(amount)
        if not description or not description.strip():
            raise InvalidManualEntryError("description", "description is required")

        if is_missing(transaction_date):
            when = self._clock.today()
        else:
            when = parse_date(transaction_date)
            if when is None:
                raise InvalidManualEntryError(
                    "transaction_date", f"{transaction_date!r} is not a date",
                )

        entry = ManualLedgerEntry(
            id=f"man-{uuid4().hex[:12]}",
            entry_type=kind,
            category=(category or "").strip() or self._settings.default_manual_category,
            description=description.strip(),
            amount_base=value,
            transaction_date=when,
        )
        self._manual_entries[entry.id] = entry
        logger.info("manual_entry_recorded", extra={
            "record_id": entry.id,
            "entry_type": kind.value,
            "category": entry.category,
            "amount_base": value,
            "transaction_date": when.isoformat(),
        })
        return entry

    def delete_manual_entry(self, entry_id: str) -> None:
        if self._manual_entries.pop(entry_id, None) is None:
            raise RecordNotFoundError("ManualLedgerEntry", entry_id)
        logger.info("manual_entry_deleted", extra={"record_id": entry_id})

    def add_overhead(
        self,
        name: str,
        amount: Decimal | str | int,
        recurrence: Recurrence | str = Recurrence.MONTHLY,
        start_date: date | str | None = None,
    ) -> RecurringOverhead:
        """
        Define a recurring overhead (rent, salaries) in base currency.

        Raises:
            InvalidManualEntryError: On a blank name, a non-positive amount
                or an unknown recurrence.
        """
        if not name or not name.strip():
            raise InvalidManualEntryError("name", "overhead name is required")
        value = _positive_amount(amount)
        try:
            overhead = RecurringOverhead(
                id=f"oh-{uuid4().hex[:12]}",
                name=name.strip(),
                amount_base=value,
                recurrence=recurrence,
                start_date=start_date if start_date is not None else self._clock.today(),
            )
        except ValueError as e:
            raise InvalidManualEntryError("recurrence", str(e)) from e
        self._overheads[overhead.id] = overhead
        logger.info("overhead_added", extra={
            "record_id": overhead.id,
            "recurrence": overhead.recurrence.value,
            "amount_base": value,
        })
        return overhead

    def delete_overhead(self, overhead_id: str) -> None:
        if self._overheads.pop(overhead_id, None) is None:
            raise RecordNotFoundError("RecurringOverhead", overhead_id)
        logger.info("overhead_deleted", extra={"record_id": overhead_id})

    def update_rate_table(self, rate_table: CurrencyRateTable) -> None:
        """Swap in refreshed rates; the base currency must not change."""
        if rate_table.base_currency != self._settings.base_currency:
            raise ValueError(
                f"Rate table base {rate_table.base_currency} does not match "
                f"configured base {self._settings.base_currency}"
            )
        self._rate_table = rate_table
        logger.info("rate_table_updated", extra={
            "currencies": list(rate_table.currencies),
            "last_updated": rate_table.last_updated,
        })

    def import_sources(self, sources: CashFlowSources) -> None:
        """Hold every record of a loaded sources document (ids must be new)."""
        for collection, kind, records in (
            (self._receivables, "Receivable", sources.receivables),
            (self._payables, "Payable", sources.payables),
            (self._manual_entries, "ManualLedgerEntry", sources.manual_entries),
            (self._overheads, "RecurringOverhead", sources.overheads),
        ):
            for record in records:
                if record.id in collection:
                    raise DuplicateRecordError(kind, record.id)
                collection[record.id] = record
        logger.info("sources_imported", extra={
            "receivable_count": len(sources.receivables),
            "payable_count": len(sources.payables),
            "manual_entry_count": len(sources.manual_entries),
            "overhead_count": len(sources.overheads),
        })

    def sources(self) -> CashFlowSources:
        """Frozen copy of the current collections."""
        return CashFlowSources.of(
            receivables=list(self._receivables.values()),
            payables=list(self._payables.values()),
            manual_entries=list(self._manual_entries.values()),
            overheads=list(self._overheads.values()),
        )

    # =========================================================================
    # Projection
    # =========================================================================

    def project(self, as_of: date | datetime | None = None) -> CashFlowProjection:
        """Re-derive timeline, snapshot and forecast (``as_of`` defaults to now)."""
        moment = as_of if as_of is not None else self._clock.now()
        day = moment.date() if isinstance(moment, datetime) else moment
        with LogContext.bind(projection_id=str(uuid4()), as_of=day.isoformat()):
            return self._engine.project(
                sources=self.sources(),
                rate_table=self._rate_table,
                as_of=moment,
                window_months=self._settings.window_months,
                currency_policy=self._settings.unknown_currency_policy,
                alignment=self._settings.quarter_alignment,
                max_rate_age=self._settings.max_rate_age,
            )

    def ledger(
        self,
        job_reference: str | None = None,
        as_of: date | datetime | None = None,
    ) -> tuple[CashFlowEvent, ...]:
        """Timeline events, optionally limited to one job."""
        timeline = self.project(as_of).timeline
        if job_reference is None or job_reference == ALL_JOBS:
            return timeline.events
        return timeline.for_job(job_reference)

    # =========================================================================
    # Audit views
    # =========================================================================

    def audit_jobs(self) -> tuple[str, ...]:
        """Distinct job references across receivables and payables, sorted."""
        jobs = {r.job_reference for r in self._receivables.values()}
        jobs.update(p.job_reference for p in self._payables.values())
        jobs.discard("")
        return tuple(sorted(jobs))

    def _base_amount(self, amount: Decimal | None, currency: str | None) -> Decimal | None:
        if amount is None:
            return None
        return normalize_amount(
            amount, currency, self._rate_table, self._settings.unknown_currency_policy,
        )

    def audit_receivables(self, job_reference: str = ALL_JOBS) -> tuple[AuditLine, ...]:
        """Receivables with base equivalents and due dates, optionally by job."""
        return tuple(
            AuditLine(
                record_id=inv.id,
                source_kind=SourceKind.INVOICE,
                job_reference=inv.job_reference,
                counterparty=inv.style_reference,
                original_amount=inv.invoice_amount,
                currency=inv.currency,
                amount_base=self._base_amount(inv.invoice_amount, inv.currency),
                due_date=derive_due_date(inv.ship_date, inv.payment_term_days),
            )
            for inv in self._receivables.values()
            if job_reference == ALL_JOBS or inv.job_reference == job_reference
        )

    def audit_payables(self, job_reference: str = ALL_JOBS) -> tuple[AuditLine, ...]:
        """Payables with base equivalents and due dates, optionally by job."""
        return tuple(
            AuditLine(
                record_id=po.id,
                source_kind=SourceKind.PO,
                job_reference=po.job_reference,
                counterparty=po.supplier_name,
                original_amount=po.po_amount,
                currency=po.currency,
                amount_base=self._base_amount(po.po_amount, po.currency),
                due_date=derive_due_date(po.po_issue_date, po.payment_term_days),
            )
            for po in self._payables.values()
            if job_reference == ALL_JOBS or po.job_reference == job_reference
        )
