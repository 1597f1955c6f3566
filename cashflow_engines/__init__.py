"""
Module: cashflow_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    finance module and scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cashflow_kernel (and sibling engine modules).
    MUST NOT import cashflow_config or cashflow_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The as-of date is an explicit parameter everywhere.
    - Decimal-only arithmetic for all monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entrypoints are traced via ``@traced_engine`` (see
    ``cashflow_engines.tracer``), emitting CASHFLOW_ENGINE_TRACE log records
    with engine name, version, input fingerprint and duration.

Usage:
    from cashflow_engines import CashFlowEngine, CashFlowSources
    from cashflow_engines.currency_normalizer import normalize
    from cashflow_engines.recurrence import expand
"""

from cashflow_engines.currency_normalizer import (
    ConversionResult,
    Normalized,
    Unresolvable,
    normalize,
    normalize_amount,
)
from cashflow_engines.due_dates import derive_due_date, parse_date
from cashflow_engines.event_normalizer import (
    EventNormalizer,
    NormalizedEvents,
    normalize_manual_entries,
    normalize_payables,
    normalize_receivables,
)
from cashflow_engines.monthly_forecast import MonthBucket, forecast, month_label
from cashflow_engines.projection import (
    CashFlowEngine,
    CashFlowProjection,
    CashFlowSources,
    rate_table_is_stale,
)
from cashflow_engines.recurrence import (
    DEFAULT_WINDOW_MONTHS,
    expand,
    forecast_window,
)
from cashflow_engines.snapshot import CashFlowSnapshot, snapshots
from cashflow_engines.timeline import Timeline, assemble_timeline
from cashflow_engines.tracer import traced_engine

__all__ = [
    "CashFlowEngine",
    "CashFlowProjection",
    "CashFlowSnapshot",
    "CashFlowSources",
    "ConversionResult",
    "DEFAULT_WINDOW_MONTHS",
    "EventNormalizer",
    "MonthBucket",
    "Normalized",
    "NormalizedEvents",
    "Timeline",
    "Unresolvable",
    "assemble_timeline",
    "derive_due_date",
    "expand",
    "forecast",
    "forecast_window",
    "month_label",
    "normalize",
    "normalize_amount",
    "normalize_manual_entries",
    "normalize_payables",
    "normalize_receivables",
    "parse_date",
    "rate_table_is_stale",
    "snapshots",
    "traced_engine",
]
