"""
Module: cashflow_engines.timeline
Responsibility:
    Merge normalized source events and expanded overhead events into one
    chronologically ordered timeline -- the single input of both
    aggregators and of any ledger-style listing.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Events are sorted ascending by date.
    - The sort is stable: same-date events keep insertion order
      (invoices, POs, manual entries, overheads).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from cashflow_engines.event_normalizer import NormalizedEvents
from cashflow_kernel.domain.records import CashFlowEvent, Direction, ForecastIssue
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.timeline")


@dataclass(frozen=True)
class Timeline:
    """Sorted cash-flow events with the issues met while deriving them."""

    events: tuple[CashFlowEvent, ...] = ()
    issues: tuple[ForecastIssue, ...] = ()

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    @property
    def dropped(self) -> tuple[ForecastIssue, ...]:
        """Issues whose record is absent from the timeline."""
        return tuple(i for i in self.issues if i.dropped)

    @property
    def flagged(self) -> tuple[CashFlowEvent, ...]:
        """Events kept with an assumed base-currency amount."""
        return tuple(e for e in self.events if e.currency_flagged)

    def inflows(self) -> tuple[CashFlowEvent, ...]:
        return tuple(e for e in self.events if e.direction is Direction.INFLOW)

    def outflows(self) -> tuple[CashFlowEvent, ...]:
        return tuple(e for e in self.events if e.direction is Direction.OUTFLOW)

    def for_job(self, job_reference: str) -> tuple[CashFlowEvent, ...]:
        """Events tied to one job (invoices and POs only)."""
        return tuple(e for e in self.events if e.job_reference == job_reference)

    def between(self, start: date, end: date) -> tuple[CashFlowEvent, ...]:
        """Events dated in the closed range [start, end]."""
        return tuple(e for e in self.events if start <= e.date <= end)


def assemble_timeline(
    normalized: NormalizedEvents,
    overhead_events: Iterable[CashFlowEvent] = (),
) -> Timeline:
    """Concatenate source and overhead events and stable-sort them by date."""
    merged = list(normalized.events)
    merged.extend(overhead_events)
    merged.sort(key=lambda e: e.date)

    logger.debug("timeline_assembled", extra={
        "event_count": len(merged),
        "issue_count": len(normalized.issues),
        "first_date": merged[0].date.isoformat() if merged else None,
        "last_date": merged[-1].date.isoformat() if merged else None,
    })
    return Timeline(events=tuple(merged), issues=normalized.issues)
