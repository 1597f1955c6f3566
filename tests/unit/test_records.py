"""
Tests for source records, cash-flow events and forecast issues.
"""

from datetime import date
from decimal import Decimal

import pytest

from cashflow_kernel.domain.records import (
    CashFlowEvent,
    Direction,
    EntryType,
    ForecastIssue,
    IssueKind,
    ManualLedgerEntry,
    Recurrence,
    RecurringOverhead,
    SourceKind,
)
from cashflow_kernel.exceptions import (
    MissingRequiredFieldError,
    UnknownCurrencyError,
    UnresolvableDateError,
)
from tests.factories import make_manual_entry, make_overhead, make_payable, make_receivable


class TestReceivableAndPayable:
    """Dated source records from invoices and purchase orders."""

    def test_amount_coerced_to_decimal(self):
        inv = make_receivable(invoice_amount="1000.50")
        assert inv.invoice_amount == Decimal("1000.50")

    def test_float_amount_kept_exact(self):
        po = make_payable(po_amount=0.1)
        assert po.po_amount == Decimal("0.1")

    def test_missing_amount_allowed(self):
        assert make_receivable(invoice_amount=None).invoice_amount is None
        assert make_payable(po_amount="").po_amount is None

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            make_receivable(invoice_amount="-1")

    def test_currency_normalized(self):
        assert make_receivable(currency=" usd ").currency == "USD"
        assert make_payable(currency="  ").currency is None

    def test_negative_terms_rejected(self):
        with pytest.raises(ValueError, match="payment_term_days"):
            make_payable(payment_term_days=-1)

    def test_non_integer_terms_rejected(self):
        with pytest.raises(ValueError, match="payment_term_days"):
            make_receivable(payment_term_days="30")

    def test_unparseable_date_accepted_on_record(self):
        """The normalizer, not the record, decides an odd date drops it."""
        po = make_payable(po_issue_date="next week")
        assert po.po_issue_date == "next week"

    def test_records_are_frozen(self):
        inv = make_receivable()
        with pytest.raises(AttributeError):
            inv.invoice_amount = Decimal("1")


class TestManualEntryAndOverhead:

    def test_entry_type_from_string(self):
        assert make_manual_entry(entry_type="income").entry_type is EntryType.INCOME
        assert make_manual_entry(entry_type="EXPENSE").entry_type is EntryType.EXPENSE

    def test_unknown_entry_type_rejected(self):
        with pytest.raises(ValueError, match="EntryType"):
            ManualLedgerEntry(
                id="m", entry_type="Transfer", category="General",
                description="x", amount_base=Decimal("1"),
            )

    def test_recurrence_from_string(self):
        assert make_overhead(recurrence="Quarterly").recurrence is Recurrence.QUARTERLY
        assert make_overhead(recurrence="yearly").recurrence is Recurrence.YEARLY

    def test_unknown_recurrence_rejected(self):
        with pytest.raises(ValueError, match="Recurrence"):
            make_overhead(recurrence="Weekly")

    def test_overhead_requires_amount(self):
        with pytest.raises(ValueError, match="requires amount_base"):
            RecurringOverhead(id="oh", name="Rent", amount_base=None, recurrence="Monthly")


class TestCashFlowEvent:

    def _event(self, direction):
        return CashFlowEvent(
            id="e1", date=date(2025, 1, 31), direction=direction,
            source_kind=SourceKind.INVOICE, description="Export Inv (JOB-101)",
            amount_base=Decimal("280000"),
        )

    def test_inflow_signed_positive(self):
        event = self._event(Direction.INFLOW)
        assert event.is_inflow
        assert event.signed_amount == Decimal("280000")

    def test_outflow_signed_negative(self):
        event = self._event(Direction.OUTFLOW)
        assert not event.is_inflow
        assert event.signed_amount == Decimal("-280000")


class TestForecastIssue:
    """Issues map back onto the typed exception hierarchy."""

    def test_code_matches_kind(self):
        issue = ForecastIssue(
            kind=IssueKind.UNRESOLVABLE_DATE, source_kind=SourceKind.PO,
            record_id="po-9", detail="bad date",
        )
        assert issue.code == "UNRESOLVABLE_DATE"
        assert issue.dropped is True

    def test_unresolvable_date_exception(self):
        issue = ForecastIssue(
            kind=IssueKind.UNRESOLVABLE_DATE, source_kind=SourceKind.PO,
            record_id="po-9", detail="bad date",
            field_name="po_issue_date", value="next week",
        )
        exc = issue.to_exception()
        assert isinstance(exc, UnresolvableDateError)
        assert exc.code == issue.code
        assert exc.record_id == "po-9"
        assert exc.value == "next week"

    def test_unknown_currency_exception(self):
        issue = ForecastIssue(
            kind=IssueKind.UNKNOWN_CURRENCY, source_kind=SourceKind.INVOICE,
            record_id="inv-2", detail="no rate", dropped=False,
            field_name="currency", value="GBP",
        )
        exc = issue.to_exception(base_currency="PKR")
        assert isinstance(exc, UnknownCurrencyError)
        assert exc.currency == "GBP"
        assert exc.base_currency == "PKR"

    def test_missing_field_exception(self):
        issue = ForecastIssue(
            kind=IssueKind.MISSING_REQUIRED_FIELD, source_kind=SourceKind.MANUAL,
            record_id="man-1", detail="missing", field_name="amount_base",
        )
        exc = issue.to_exception()
        assert isinstance(exc, MissingRequiredFieldError)
        assert exc.field_name == "amount_base"
