"""
Module: cashflow_engines.recurrence
Responsibility:
    Materialize recurring overhead templates into dated Outflow events
    across a forward window of calendar months.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Purity: the window is anchored on an explicit ``as_of`` date.
    - A Monthly overhead yields exactly ``window_months`` events.
    - A Yearly overhead yields at most one event per 12 window months.
    - Every event is dated on the 1st of its month and carries the
      overhead's amount unconverted (overheads are base currency).

Failure modes:
    - ValueError when ``window_months`` < 1.

Alignment:
    CALENDAR (default) places Quarterly overheads in Jan/Apr/Jul/Oct and
    Yearly overheads in January, whatever their start date.  START_DATE
    counts 3 / 12 months from each overhead's start month and skips months
    before it; an overhead whose start date cannot be parsed falls back to
    CALENDAR.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from cashflow_engines.due_dates import parse_date
from cashflow_engines.tracer import traced_engine
from cashflow_kernel.domain.policies import QuarterAlignment
from cashflow_kernel.domain.records import (
    CashFlowEvent,
    Direction,
    Recurrence,
    RecurringOverhead,
    SourceKind,
)
from cashflow_kernel.logging_config import get_logger

logger = get_logger("engines.recurrence")

DEFAULT_WINDOW_MONTHS = 6


def month_start(day: date) -> date:
    """First day of the month containing ``day``."""
    return day.replace(day=1)


def add_months(first: date, offset: int) -> date:
    """The 1st of the month ``offset`` months after ``first``'s month."""
    index = first.year * 12 + (first.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def forecast_window(as_of: date, window_months: int = DEFAULT_WINDOW_MONTHS) -> tuple[date, ...]:
    """
    Month starts covered by the forecast window.

    Raises:
        ValueError: If ``window_months`` < 1.
    """
    if window_months < 1:
        raise ValueError(f"window_months must be at least 1: {window_months}")
    anchor = month_start(as_of)
    return tuple(add_months(anchor, i) for i in range(window_months))


def _lands_in_calendar(recurrence: Recurrence, month: date) -> bool:
    if recurrence is Recurrence.MONTHLY:
        return True
    if recurrence is Recurrence.QUARTERLY:
        return (month.month - 1) % 3 == 0
    return month.month == 1


def _lands_from_start(recurrence: Recurrence, month: date, start: date) -> bool:
    elapsed = (month.year - start.year) * 12 + (month.month - start.month)
    if elapsed < 0:
        return False
    if recurrence is Recurrence.MONTHLY:
        return True
    if recurrence is Recurrence.QUARTERLY:
        return elapsed % 3 == 0
    return elapsed % 12 == 0


@traced_engine(
    "recurrence", "1.0",
    fingerprint_fields=("overheads", "as_of", "window_months", "alignment"),
)
def expand(
    overheads: Sequence[RecurringOverhead],
    as_of: date,
    window_months: int = DEFAULT_WINDOW_MONTHS,
    alignment: QuarterAlignment = QuarterAlignment.CALENDAR,
) -> tuple[CashFlowEvent, ...]:
    """
    Expand overhead templates over the window starting at ``as_of``'s month.

    Returns:
        Events ordered by month, then by overhead input order.  Event ids
        are ``"<overhead id>-<month offset>"``.
    """
    months = forecast_window(as_of, window_months)

    starts: dict[str, date | None] = {}
    if alignment is QuarterAlignment.START_DATE:
        for oh in overheads:
            starts[oh.id] = parse_date(oh.start_date)
            if starts[oh.id] is None:
                logger.warning("overhead_start_unresolved", extra={
                    "overhead_id": oh.id,
                    "start_date": None if oh.start_date is None else str(oh.start_date),
                    "fallback": QuarterAlignment.CALENDAR.value,
                })

    events: list[CashFlowEvent] = []
    for offset, month in enumerate(months):
        for oh in overheads:
            start = starts.get(oh.id)
            if start is not None:
                lands = _lands_from_start(oh.recurrence, month, start)
            else:
                lands = _lands_in_calendar(oh.recurrence, month)
            if not lands:
                continue
            events.append(CashFlowEvent(
                id=f"{oh.id}-{offset}",
                date=month,
                direction=Direction.OUTFLOW,
                source_kind=SourceKind.OVERHEAD,
                description=oh.name,
                amount_base=oh.amount_base,
            ))

    logger.info("recurrence_expanded", extra={
        "overhead_count": len(overheads),
        "window_start": months[0].isoformat(),
        "window_months": window_months,
        "alignment": alignment.value,
        "event_count": len(events),
    })
    return tuple(events)
