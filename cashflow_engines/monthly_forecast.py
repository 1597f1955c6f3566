"""
Module: cashflow_engines.monthly_forecast
Responsibility:
    Bucket timeline events by calendar month and compute the cumulative
    running balance that the forecast chart plots.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Buckets are ordered by ``month_start``, never by label text
      ("Dec 2025" must precede "Jan 2026").
    - running_balance[n] = running_balance[n-1] + inflow[n] - outflow[n],
      seeded at zero: there is no opening balance.
    - Only months holding at least one event get a bucket.
    - Labels use fixed English abbreviations, independent of locale.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashflow_engines.tracer import traced_engine
from cashflow_kernel.domain.records import CashFlowEvent, Direction
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.monthly_forecast")

_ZERO = Decimal("0")

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def month_label(day: date) -> str:
    """Display label such as "Jan 2026"."""
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"


@dataclass(frozen=True)
class MonthBucket:
    """One month of aggregated forecast figures."""

    month_label: str
    month_start: date
    inflow_total: Decimal
    outflow_total: Decimal
    running_balance: Decimal

    @property
    def net(self) -> Decimal:
        return self.inflow_total - self.outflow_total


@traced_engine("monthly_forecast", "1.0", fingerprint_fields=("events",))
def forecast(events: Iterable[CashFlowEvent]) -> tuple[MonthBucket, ...]:
    """
    Group events by (year, month), sum per direction, and accumulate.

    Returns:
        Buckets in chronological order with running balances from zero.
    """
    totals: dict[date, list[Decimal]] = {}
    for e in events:
        key = e.date.replace(day=1)
        pair = totals.setdefault(key, [_ZERO, _ZERO])
        if e.direction is Direction.INFLOW:
            pair[0] += e.amount_base
        else:
            pair[1] += e.amount_base

    buckets: list[MonthBucket] = []
    running = _ZERO
    for start in sorted(totals):
        inflow, outflow = totals[start]
        running += inflow - outflow
        buckets.append(MonthBucket(
            month_label=month_label(start),
            month_start=start,
            inflow_total=inflow,
            outflow_total=outflow,
            running_balance=running,
        ))

    logger.info("monthly_forecast_computed", extra={
        "bucket_count": len(buckets),
        "first_month": buckets[0].month_label if buckets else None,
        "last_month": buckets[-1].month_label if buckets else None,
        "closing_balance": running,
    })
    return tuple(buckets)
