"""
Pure domain layer.

This module contains immutable records, value objects and policies with
NO dependencies on:
- Persistence
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from cashflow_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from cashflow_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from cashflow_kernel.domain.policies import QuarterAlignment, UnknownCurrencyPolicy
from cashflow_kernel.domain.records import (
    CashFlowEvent,
    DateInput,
    Direction,
    EntryType,
    ForecastIssue,
    IssueKind,
    ManualLedgerEntry,
    Payable,
    Receivable,
    Recurrence,
    RecurringOverhead,
    SourceKind,
)
from cashflow_kernel.domain.values import CurrencyRateTable, to_decimal

__all__ = [
    "CashFlowEvent",
    "Clock",
    "CurrencyInfo",
    "CurrencyRateTable",
    "CurrencyRegistry",
    "DateInput",
    "DeterministicClock",
    "Direction",
    "EntryType",
    "ForecastIssue",
    "IssueKind",
    "ManualLedgerEntry",
    "Payable",
    "QuarterAlignment",
    "Receivable",
    "Recurrence",
    "RecurringOverhead",
    "SourceKind",
    "SystemClock",
    "UnknownCurrencyPolicy",
    "to_decimal",
]
