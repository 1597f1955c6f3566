"""
Module: cashflow_engines.projection
Responsibility:
    One full re-derivation of the cash-flow engine: normalize, expand,
    assemble, then aggregate into snapshot and monthly forecast.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The finance module calls
    ``CashFlowEngine.project`` on every read; nothing is cached between
    calls.

Invariants enforced:
    - Idempotence: equal inputs give equal projections.
    - Both aggregators consume the same assembled timeline.
    - ``as_of`` is always supplied by the caller.

Usage:
    engine = CashFlowEngine()
    projection = engine.project(
        sources=CashFlowSources(receivables=(...), overheads=(...)),
        rate_table=CurrencyRateTable.of("PKR", USD="280"),
        as_of=date(2025, 1, 15),
    )
    projection.forecast[-1].running_balance
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from cashflow_engines.event_normalizer import EventNormalizer
from cashflow_engines.monthly_forecast import MonthBucket, forecast
from cashflow_engines.recurrence import DEFAULT_WINDOW_MONTHS, expand
from cashflow_engines.snapshot import CashFlowSnapshot, snapshots
from cashflow_engines.timeline import Timeline, assemble_timeline
from cashflow_engines.tracer import traced_engine
from cashflow_kernel.domain.policies import QuarterAlignment, UnknownCurrencyPolicy
from cashflow_kernel.domain.records import (
    ManualLedgerEntry,
    Payable,
    Receivable,
    RecurringOverhead,
)
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.projection")


@dataclass(frozen=True)
class CashFlowSources:
    """The four input collections, frozen for one projection."""

    receivables: tuple[Receivable, ...] = ()
    payables: tuple[Payable, ...] = ()
    manual_entries: tuple[ManualLedgerEntry, ...] = ()
    overheads: tuple[RecurringOverhead, ...] = ()

    @classmethod
    def of(
        cls,
        receivables: Sequence[Receivable] = (),
        payables: Sequence[Payable] = (),
        manual_entries: Sequence[ManualLedgerEntry] = (),
        overheads: Sequence[RecurringOverhead] = (),
    ) -> CashFlowSources:
        return cls(
            receivables=tuple(receivables),
            payables=tuple(payables),
            manual_entries=tuple(manual_entries),
            overheads=tuple(overheads),
        )


@dataclass(frozen=True)
class CashFlowProjection:
    """Everything the finance screens render for one as-of date."""

    as_of: date
    base_currency: str
    timeline: Timeline
    snapshot: CashFlowSnapshot
    forecast: tuple[MonthBucket, ...] = field(default_factory=tuple)
    rate_table_stale: bool = False

    @property
    def closing_balance(self) -> Decimal:
        """Running balance of the last bucket (zero with no events)."""
        if not self.forecast:
            return Decimal("0")
        return self.forecast[-1].running_balance


def rate_table_is_stale(
    rate_table: CurrencyRateTable,
    as_of: date | datetime,
    max_age: timedelta | None,
) -> bool:
    """Staleness at ``as_of`` (midnight for a bare date); False without a limit."""
    if max_age is None:
        return False
    if rate_table.last_updated is None:
        return True
    moment = as_of if isinstance(as_of, datetime) else datetime.combine(as_of, time.min)
    updated_tz = rate_table.last_updated.tzinfo
    if (moment.tzinfo is None) != (updated_tz is None):
        moment = moment.replace(tzinfo=updated_tz)
    return rate_table.is_stale(moment, max_age)


class CashFlowEngine:
    """
    Pure cash-flow projection.

    Contract:
        No I/O, no clock, no state between calls.
    Guarantees:
        - ``project`` twice with equal arguments returns equal results.
    Non-goals:
        - Does not own the source collections; see
          ``cashflow_modules.finance.FinanceLedgerService``.
    """

    @traced_engine(
        "projection", "1.0",
        fingerprint_fields=(
            "sources", "rate_table", "as_of", "window_months",
            "currency_policy", "alignment", "max_rate_age",
        ),
    )
    def project(
        self,
        sources: CashFlowSources,
        rate_table: CurrencyRateTable,
        as_of: date | datetime,
        window_months: int = DEFAULT_WINDOW_MONTHS,
        currency_policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG,
        alignment: QuarterAlignment = QuarterAlignment.CALENDAR,
        max_rate_age: timedelta | None = None,
    ) -> CashFlowProjection:
        """
        Derive timeline, snapshot and forecast from scratch.

        Args:
            sources: Receivables, payables, manual entries, overheads.
            rate_table: Base-currency multipliers.
            as_of: Reference "now" for the overhead window and snapshots.
            window_months: Overhead expansion window.
            currency_policy: Handling of currencies missing from the table.
            alignment: Quarterly/Yearly overhead month alignment.
            max_rate_age: Report ``rate_table_stale`` beyond this age.
        """
        stale = rate_table_is_stale(rate_table, as_of, max_rate_age)
        day = as_of.date() if isinstance(as_of, datetime) else as_of

        normalizer = EventNormalizer(rate_table, currency_policy)
        normalized = normalizer.normalize(
            receivables=sources.receivables,
            payables=sources.payables,
            manual_entries=sources.manual_entries,
        )
        overhead_events = expand(
            overheads=sources.overheads,
            as_of=day,
            window_months=window_months,
            alignment=alignment,
        )
        timeline = assemble_timeline(normalized, overhead_events)

        projection = CashFlowProjection(
            as_of=day,
            base_currency=rate_table.base_currency,
            timeline=timeline,
            snapshot=snapshots(events=timeline.events, as_of=day),
            forecast=forecast(events=timeline.events),
            rate_table_stale=stale,
        )

        if stale:
            logger.warning("rate_table_stale", extra={
                "base_currency": rate_table.base_currency,
                "last_updated": rate_table.last_updated,
                "max_age_hours": max_rate_age.total_seconds() / 3600,
            })
        logger.info("projection_completed", extra={
            "as_of": day.isoformat(),
            "event_count": len(timeline.events),
            "issue_count": len(timeline.issues),
            "bucket_count": len(projection.forecast),
            "closing_balance": projection.closing_balance,
        })
        return projection
