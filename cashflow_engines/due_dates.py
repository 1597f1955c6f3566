"""
Module: cashflow_engines.due_dates
Responsibility:
    Parse raw record dates and derive payment due dates from business
    terms (calendar days, not business days).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Fail closed: a missing or unparseable issue date, or a term that
      overflows the calendar, yields ``None``, never the raw input, so no
      corrupt value reaches timeline sorting.
    - Monotone in the term: t1 <= t2 implies due(d, t1) <= due(d, t2).

Failure modes:
    - ValueError on negative or non-integer term days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any


def parse_date(value: Any) -> date | None:
    """
    Parse a record date.

    Accepts ``date``, ``datetime`` (date part), ISO dates ("2025-01-31")
    and ISO datetimes ("2025-01-31T09:30:00Z").  Anything else, including
    ``None`` and blank strings, yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def is_missing(value: Any) -> bool:
    """True if a raw date field is absent rather than malformed."""
    return value is None or (isinstance(value, str) and not value.strip())


def derive_due_date(issue_date: Any, term_days: int) -> date | None:
    """
    Add ``term_days`` calendar days to ``issue_date``.

    Returns:
        The due date, or None when ``issue_date`` cannot be resolved or
        the due date falls past ``date.max``.

    Raises:
        ValueError: If ``term_days`` is negative or not an integer.
    """
    if isinstance(term_days, bool) or not isinstance(term_days, int):
        raise ValueError(f"term_days must be an integer: {term_days!r}")
    if term_days < 0:
        raise ValueError(f"term_days cannot be negative: {term_days}")

    issued = parse_date(issue_date)
    if issued is None:
        return None
    try:
        return issued + timedelta(days=term_days)
    except OverflowError:
        return None
