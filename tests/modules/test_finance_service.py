"""
Tests for FinanceLedgerService.

Covers:
- Holding receivables / payables (duplicate ids rejected)
- Operator manual entries: validation, defaults, deletion
- Recurring overheads: creation, deletion
- Rate-table refresh
- Projection reads re-derive from current state
- Audit views by job
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cashflow_config.schema import ForecastSettings
from cashflow_engines.projection import CashFlowSources
from cashflow_kernel.domain.policies import UnknownCurrencyPolicy
from cashflow_kernel.domain.records import EntryType, Recurrence, SourceKind
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.exceptions import (
    DuplicateRecordError,
    InvalidManualEntryError,
    RecordNotFoundError,
)
from cashflow_modules.finance import ALL_JOBS, AuditLine, FinanceLedgerService
from tests.factories import make_overhead, make_payable, make_receivable


@pytest.fixture
def service(clock, rates):
    return FinanceLedgerService(ForecastSettings(), rates, clock)


class TestSourceCollections:

    def test_add_receivable_and_payable(self, service):
        service.add_receivable(make_receivable())
        service.add_payable(make_payable())

        sources = service.sources()
        assert [r.id for r in sources.receivables] == ["inv-1"]
        assert [p.id for p in sources.payables] == ["po-1"]

    def test_duplicate_receivable_rejected(self, service):
        service.add_receivable(make_receivable())
        with pytest.raises(DuplicateRecordError) as exc_info:
            service.add_receivable(make_receivable())
        assert exc_info.value.code == "DUPLICATE_RECORD"
        assert exc_info.value.record_kind == "Receivable"

    def test_duplicate_payable_rejected(self, service):
        service.add_payable(make_payable())
        with pytest.raises(DuplicateRecordError):
            service.add_payable(make_payable())

    def test_import_sources(self, service):
        service.import_sources(CashFlowSources.of(
            receivables=[make_receivable()],
            payables=[make_payable()],
            overheads=[make_overhead()],
        ))

        sources = service.sources()
        assert len(sources.receivables) == 1
        assert len(sources.overheads) == 1

    def test_import_rejects_held_id(self, service):
        service.add_receivable(make_receivable())
        with pytest.raises(DuplicateRecordError):
            service.import_sources(CashFlowSources.of(receivables=[make_receivable()]))

    def test_sources_is_a_snapshot(self, service):
        before = service.sources()
        service.add_receivable(make_receivable())
        assert before.receivables == ()


class TestManualEntries:

    def test_record_expense(self, service):
        entry = service.record_manual_entry(
            "Expense", Decimal("15000"), "Generator fuel",
            category="Utilities", transaction_date="2025-03-10",
        )

        assert entry.id.startswith("man-")
        assert entry.entry_type is EntryType.EXPENSE
        assert entry.amount_base == Decimal("15000")
        assert entry.category == "Utilities"
        assert entry.transaction_date == date(2025, 3, 10)
        assert service.sources().manual_entries == (entry,)

    def test_defaults_category_and_date(self, service):
        entry = service.record_manual_entry(EntryType.INCOME, "4200", "  Scrap sale  ")

        assert entry.category == "General"
        assert entry.transaction_date == date(2025, 1, 15)
        assert entry.description == "Scrap sale"

    def test_category_default_from_settings(self, clock, rates):
        service = FinanceLedgerService(
            ForecastSettings(default_manual_category="Misc"), rates, clock,
        )
        entry = service.record_manual_entry("Income", "1", "x", category="  ")
        assert entry.category == "Misc"

    def test_ids_unique(self, service):
        first = service.record_manual_entry("Income", "1", "a")
        second = service.record_manual_entry("Income", "1", "a")
        assert first.id != second.id

    @pytest.mark.parametrize("amount", [None, "", "0", "-5", "abc"])
    def test_invalid_amount_rejected(self, service, amount):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.record_manual_entry("Expense", amount, "Fuel")
        assert exc_info.value.field_name == "amount"
        assert exc_info.value.code == "INVALID_MANUAL_ENTRY"
        assert service.sources().manual_entries == ()

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_blank_description_rejected(self, service, description):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.record_manual_entry("Expense", "10", description)
        assert exc_info.value.field_name == "description"

    def test_unknown_entry_type_rejected(self, service):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.record_manual_entry("Transfer", "10", "x")
        assert exc_info.value.field_name == "entry_type"

    @pytest.mark.parametrize("entry_type, expected", [
        ("income", EntryType.INCOME),
        (" EXPENSE ", EntryType.EXPENSE),
        ("Income", EntryType.INCOME),
    ])
    def test_entry_type_case_insensitive(self, service, entry_type, expected):
        entry = service.record_manual_entry(entry_type, "10", "x")
        assert entry.entry_type is expected

    def test_unparseable_date_rejected(self, service):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.record_manual_entry("Expense", "10", "x", transaction_date="soon")
        assert exc_info.value.field_name == "transaction_date"

    def test_delete(self, service):
        entry = service.record_manual_entry("Expense", "10", "x")
        service.delete_manual_entry(entry.id)
        assert service.sources().manual_entries == ()

    def test_delete_unknown_rejected(self, service):
        with pytest.raises(RecordNotFoundError) as exc_info:
            service.delete_manual_entry("man-missing")
        assert exc_info.value.code == "RECORD_NOT_FOUND"

    def test_logged(self, service, captured_logs):
        entry = service.record_manual_entry("Expense", "10", "x")

        record = next(r for r in captured_logs() if r["message"] == "manual_entry_recorded")
        assert record["record_id"] == entry.id
        assert record["amount_base"] == "10"
        assert record["entry_type"] == "Expense"


class TestOverheads:

    def test_add_overhead(self, service):
        overhead = service.add_overhead("Factory rent", "50000", "Monthly", date(2024, 6, 1))

        assert overhead.id.startswith("oh-")
        assert overhead.recurrence is Recurrence.MONTHLY
        assert service.sources().overheads == (overhead,)

    def test_start_date_defaults_to_today(self, service):
        overhead = service.add_overhead("Rent", "1", Recurrence.QUARTERLY)
        assert overhead.start_date == date(2025, 1, 15)

    def test_blank_name_rejected(self, service):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.add_overhead(" ", "1")
        assert exc_info.value.field_name == "name"

    def test_non_positive_amount_rejected(self, service):
        with pytest.raises(InvalidManualEntryError):
            service.add_overhead("Rent", "0")

    def test_unknown_recurrence_rejected(self, service):
        with pytest.raises(InvalidManualEntryError) as exc_info:
            service.add_overhead("Rent", "1", "Weekly")
        assert exc_info.value.field_name == "recurrence"

    def test_delete(self, service):
        overhead = service.add_overhead("Rent", "1")
        service.delete_overhead(overhead.id)
        assert service.sources().overheads == ()

    def test_delete_unknown_rejected(self, service):
        with pytest.raises(RecordNotFoundError):
            service.delete_overhead("oh-missing")


class TestRateTable:

    def test_update_rate_table(self, service):
        fresh = CurrencyRateTable.of("PKR", USD="285")
        service.update_rate_table(fresh)
        assert service.rate_table is fresh

    def test_base_currency_change_rejected(self, service):
        with pytest.raises(ValueError, match="does not match"):
            service.update_rate_table(CurrencyRateTable.of("USD", PKR="0.0036"))

    def test_default_rate_table_is_base_only(self, clock):
        service = FinanceLedgerService(clock=clock)
        assert service.rate_table.base_currency == "PKR"
        assert service.rate_table.currencies == ()


class TestProjection:

    def test_project_uses_clock(self, service):
        service.add_receivable(make_receivable())

        projection = service.project()

        assert projection.as_of == date(2025, 1, 15)
        assert projection.snapshot.month_in == Decimal("280000")
        assert projection.rate_table_stale is False

    def test_reflects_every_mutation(self, service):
        assert len(service.project().timeline) == 0
        service.add_overhead("Rent", "50000")
        assert len(service.project().timeline) == 6
        entry = service.record_manual_entry("Expense", "10", "x")
        assert len(service.project().timeline) == 7
        service.delete_manual_entry(entry.id)
        assert len(service.project().timeline) == 6

    def test_rate_refresh_changes_projection(self, service, clock):
        service.add_receivable(make_receivable())
        service.update_rate_table(CurrencyRateTable.of(
            "PKR", last_updated=clock.now(), USD="300",
        ))
        assert service.project().timeline.events[0].amount_base == Decimal("300000")

    def test_stale_rates_flagged(self, service, clock):
        clock.advance_days(2)
        assert service.project().rate_table_stale is True

    def test_settings_policy_applied(self, clock, rates):
        service = FinanceLedgerService(
            ForecastSettings(unknown_currency_policy=UnknownCurrencyPolicy.EXCLUDE), rates, clock,
        )
        service.add_receivable(make_receivable(currency="GBP"))

        projection = service.project()

        assert len(projection.timeline) == 0
        assert projection.timeline.dropped[0].code == "UNKNOWN_CURRENCY"

    def test_window_from_settings(self, clock, rates):
        service = FinanceLedgerService(ForecastSettings(window_months=12), rates, clock)
        service.add_overhead("Rent", "1")
        assert len(service.project().timeline) == 12

    def test_explicit_as_of(self, service):
        projection = service.project(as_of=date(2025, 3, 1))
        assert projection.as_of == date(2025, 3, 1)

    def test_projection_id_in_logs(self, service, captured_logs):
        service.project()

        done = next(r for r in captured_logs() if r["message"] == "projection_completed")
        assert "projection_id" in done
        assert done["as_of"] == "2025-01-15"

    def test_ledger_by_job(self, service):
        service.add_receivable(make_receivable())
        service.add_receivable(make_receivable(id="inv-2", job_reference="JOB-102"))
        service.add_overhead("Rent", "1")

        assert len(service.ledger()) == 8
        assert len(service.ledger(ALL_JOBS)) == 8
        assert [e.id for e in service.ledger("JOB-102")] == ["inv-2"]


class TestAuditViews:

    def setup_method(self):
        self.service = FinanceLedgerService(
            ForecastSettings(),
            CurrencyRateTable.of(
                "PKR", last_updated=datetime(2025, 1, 15, tzinfo=timezone.utc), USD="280",
            ),
        )
        self.service.add_receivable(make_receivable())
        self.service.add_receivable(make_receivable(
            id="inv-2", job_reference="JOB-102", ship_date=None,
        ))
        self.service.add_payable(make_payable())
        self.service.add_payable(make_payable(
            id="po-2", job_reference="JOB-102", po_issue_date="next week",
        ))

    def test_audit_jobs_sorted_and_distinct(self):
        assert self.service.audit_jobs() == ("JOB-101", "JOB-102")

    def test_audit_receivables_all(self):
        lines = self.service.audit_receivables()

        assert lines[0] == AuditLine(
            record_id="inv-1",
            source_kind=SourceKind.INVOICE,
            job_reference="JOB-101",
            counterparty="ST-4471",
            original_amount=Decimal("1000"),
            currency="USD",
            amount_base=Decimal("280000"),
            due_date=date(2025, 1, 31),
        )
        assert lines[1].due_date is None

    def test_audit_filtered_by_job(self):
        lines = self.service.audit_payables("JOB-102")

        assert [line.record_id for line in lines] == ["po-2"]
        assert lines[0].counterparty == "Crescent Textiles"
        assert lines[0].due_date is None
        assert lines[0].amount_base == Decimal("100000")

    def test_unknown_job_empty(self):
        assert self.service.audit_receivables("JOB-999") == ()

    def test_missing_amount_has_no_base(self):
        self.service.add_payable(make_payable(id="po-3", po_amount=None))
        line = self.service.audit_payables()[-1]
        assert line.original_amount is None
        assert line.amount_base is None

    def test_stale_rates_do_not_block_audit(self):
        self.service.update_rate_table(CurrencyRateTable.of(
            "PKR", last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc) - timedelta(days=30),
            USD="280",
        ))
        assert self.service.audit_receivables()[0].amount_base == Decimal("280000")
