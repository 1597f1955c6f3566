"""
Module: cashflow_engines.snapshot
Responsibility:
    Current-week and current-month inflow/outflow totals for the summary
    cards on the finance dashboard.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Purity: "now" is the explicit ``as_of`` argument.
    - Month match: same calendar month and year as ``as_of``.
    - Week match: same ISO-8601 week (ISO year and week number, Monday
      based, week 1 holds the year's first Thursday) AND same calendar
      year as ``as_of``.  A week straddling New Year is truncated to the
      calendar year of ``as_of``; the ISO-year check keeps 30 Dec 2024
      (ISO 2025-W01) from matching 1 Jan 2024 (ISO 2024-W01).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from cashflow_engines.tracer import traced_engine
from cashflow_kernel.domain.records import CashFlowEvent, Direction
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.snapshot")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class CashFlowSnapshot:
    """Trailing totals for the week and month containing ``as_of``."""

    week_in: Decimal = _ZERO
    week_out: Decimal = _ZERO
    month_in: Decimal = _ZERO
    month_out: Decimal = _ZERO

    @property
    def week_net(self) -> Decimal:
        return self.week_in - self.week_out

    @property
    def month_net(self) -> Decimal:
        return self.month_in - self.month_out


def same_month(day: date, as_of: date) -> bool:
    return day.year == as_of.year and day.month == as_of.month


def same_week(day: date, as_of: date) -> bool:
    if day.year != as_of.year:
        return False
    iso_day = day.isocalendar()
    iso_now = as_of.isocalendar()
    return (iso_day.year, iso_day.week) == (iso_now.year, iso_now.week)


@traced_engine("snapshot", "1.0", fingerprint_fields=("events", "as_of"))
def snapshots(events: tuple[CashFlowEvent, ...], as_of: date | datetime) -> CashFlowSnapshot:
    """
    Sum ``amount_base`` per direction over events in the current week/month.

    Args:
        events: Timeline events (any order).
        as_of: Reference "now"; a datetime is reduced to its date.
    """
    if isinstance(as_of, datetime):
        as_of = as_of.date()

    week_in = week_out = month_in = month_out = _ZERO
    for e in events:
        inflow = e.direction is Direction.INFLOW
        if same_month(e.date, as_of):
            if inflow:
                month_in += e.amount_base
            else:
                month_out += e.amount_base
        if same_week(e.date, as_of):
            if inflow:
                week_in += e.amount_base
            else:
                week_out += e.amount_base

    result = CashFlowSnapshot(
        week_in=week_in, week_out=week_out, month_in=month_in, month_out=month_out,
    )
    logger.info("snapshot_computed", extra={
        "as_of": as_of.isoformat(),
        "week_in": week_in,
        "week_out": week_out,
        "month_in": month_in,
        "month_out": month_out,
    })
    return result
