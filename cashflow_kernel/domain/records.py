"""
Records -- Source transactions and the events derived from them.

Responsibility:
    Defines the four source record types the finance screens own
    (Receivable, Payable, ManualLedgerEntry, RecurringOverhead), the
    normalized CashFlowEvent every projection is built from, and the
    ForecastIssue reported when a record is dropped or flagged.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are ``Decimal`` (coerced with ``to_decimal``) or ``None``.
    - ``payment_term_days`` is a non-negative integer.
    - Event ``amount_base`` is always expressed in the base currency and
      is never negative.

Failure modes:
    - ValueError on negative payment terms, negative amounts, or a
      non-numeric amount.
    - ValueError on an unknown enum label.

    Missing amounts and missing or unparseable dates are accepted here on
    purpose: the event normalizer drops such records and reports them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from cashflow_kernel.domain.values import to_decimal
from cashflow_kernel.exceptions import (
    CashFlowKernelError,
    MissingRequiredFieldError,
    UnknownCurrencyError,
    UnresolvableDateError,
)

# Raw date fields may hold a parsed date, an ISO string, or nothing.
DateInput = date | str | None


class Direction(str, Enum):
    """Direction of a cash movement."""

    INFLOW = "Inflow"
    OUTFLOW = "Outflow"


class SourceKind(str, Enum):
    """Which source collection an event was derived from."""

    INVOICE = "Invoice"
    PO = "PO"
    MANUAL = "Manual"
    OVERHEAD = "Overhead"


class EntryType(str, Enum):
    """Operator-chosen type of a manual ledger entry."""

    INCOME = "Income"
    EXPENSE = "Expense"


class Recurrence(str, Enum):
    """Frequency of a recurring overhead."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"


class IssueKind(str, Enum):
    """Degradation reported for a single source record."""

    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    UNRESOLVABLE_DATE = "UNRESOLVABLE_DATE"
    UNKNOWN_CURRENCY = "UNKNOWN_CURRENCY"


def coerce_enum(enum_cls: type[Enum], value: Any) -> Any:
    """Enum member from a member, its value or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value.strip().lower() in (member.value.lower(), member.name.lower()):
                return member
    raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")


def _coerce_amount(name: str, value: Any) -> Decimal | None:
    amount = to_decimal(value)
    if amount is not None and amount < 0:
        raise ValueError(f"{name} cannot be negative: {amount}")
    return amount


def _check_terms(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"payment_term_days must be an integer: {value!r}")
    if value < 0:
        raise ValueError(f"payment_term_days cannot be negative: {value}")
    return value


def _normalize_code(code: str | None) -> str | None:
    if code is None:
        return None
    return code.upper().strip() or None


# ---------------------------------------------------------------------------
# Source records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Receivable:
    """Money expected from a buyer against a shipped export invoice."""

    id: str
    job_reference: str
    style_reference: str
    invoice_amount: Decimal | None
    currency: str | None
    ship_date: DateInput = None
    payment_term_days: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "invoice_amount", _coerce_amount("invoice_amount", self.invoice_amount)
        )
        object.__setattr__(self, "currency", _normalize_code(self.currency))
        _check_terms(self.payment_term_days)


@dataclass(frozen=True)
class Payable:
    """Money owed to a supplier against a purchase order."""

    id: str
    job_reference: str
    supplier_name: str
    po_amount: Decimal | None
    currency: str | None
    po_issue_date: DateInput = None
    payment_term_days: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "po_amount", _coerce_amount("po_amount", self.po_amount)
        )
        object.__setattr__(self, "currency", _normalize_code(self.currency))
        _check_terms(self.payment_term_days)


@dataclass(frozen=True)
class ManualLedgerEntry:
    """One-off income or expense entered by the operator, in base currency."""

    id: str
    entry_type: EntryType
    category: str
    description: str
    amount_base: Decimal | None
    transaction_date: DateInput = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entry_type", coerce_enum(EntryType, self.entry_type))
        object.__setattr__(
            self, "amount_base", _coerce_amount("amount_base", self.amount_base)
        )


@dataclass(frozen=True)
class RecurringOverhead:
    """
    Fixed periodic obligation (rent, salaries) in base currency.

    A template, not an event: ``cashflow_engines.recurrence`` expands it
    into dated events across the forecast window.
    """

    id: str
    name: str
    amount_base: Decimal
    recurrence: Recurrence
    start_date: DateInput = None

    def __post_init__(self) -> None:
        amount = _coerce_amount("amount_base", self.amount_base)
        if amount is None:
            raise ValueError(f"Overhead {self.id} requires amount_base")
        object.__setattr__(self, "amount_base", amount)
        object.__setattr__(self, "recurrence", coerce_enum(Recurrence, self.recurrence))


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CashFlowEvent:
    """
    A dated, base-currency cash movement on the unified timeline.

    Contract:
        Recomputed from scratch on every projection; ``id`` is derived from
        the source record (overheads append the month offset) and is only
        meant for list rendering.

    Guarantees:
        - ``amount_base`` is in the base currency and non-negative; the sign
          lives in ``direction``.
        - ``currency_flagged`` is True only when the record's currency had
          no rate and was treated as base under the FLAG policy.
    """

    id: str
    date: date
    direction: Direction
    source_kind: SourceKind
    description: str
    amount_base: Decimal
    original_amount: Decimal | None = None
    original_currency: str | None = None
    job_reference: str | None = None
    currency_flagged: bool = False

    @property
    def is_inflow(self) -> bool:
        return self.direction is Direction.INFLOW

    @property
    def signed_amount(self) -> Decimal:
        """Positive for inflows, negative for outflows."""
        return self.amount_base if self.is_inflow else -self.amount_base


@dataclass(frozen=True)
class ForecastIssue:
    """
    A source record that was dropped from, or flagged on, the timeline.

    Guarantees:
        - Exactly one issue per degraded record.
        - ``code`` matches the corresponding exception class code.
    """

    kind: IssueKind
    source_kind: SourceKind
    record_id: str
    detail: str
    dropped: bool = True
    field_name: str | None = None
    value: str | None = None

    @property
    def code(self) -> str:
        return self.kind.value

    def to_exception(self, base_currency: str = "") -> CashFlowKernelError:
        """Typed exception equivalent, for callers that want strict handling."""
        if self.kind is IssueKind.UNRESOLVABLE_DATE:
            return UnresolvableDateError(self.record_id, self.field_name or "date", self.value)
        if self.kind is IssueKind.UNKNOWN_CURRENCY:
            return UnknownCurrencyError(self.value or "", base_currency)
        return MissingRequiredFieldError(self.record_id, self.field_name or "unknown")
