"""
cashflow_modules.finance.models
===============================

Responsibility:
    Frozen view objects returned by ``FinanceLedgerService`` for the
    audit screen: one line per receivable or payable with its
    base-currency equivalent and due date.  No business logic.

Invariants enforced:
    - Monetary fields are ``Decimal`` or ``None``; never ``float``.
    - ``amount_base`` / ``due_date`` are None exactly when the engine
      could not resolve them (unknown currency under EXCLUDE, missing or
      unparseable date).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashflow_kernel.domain.records import SourceKind

ALL_JOBS = "All"


@dataclass(frozen=True)
class AuditLine:
    """A receivable or payable as shown on the per-job audit screen."""

    record_id: str
    source_kind: SourceKind
    job_reference: str
    counterparty: str  # style reference for invoices, supplier for POs
    original_amount: Decimal | None
    currency: str | None
    amount_base: Decimal | None
    due_date: date | None
