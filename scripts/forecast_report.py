#!/usr/bin/env python3
"""
Print the cash-flow projection for a sources file.

Loads forecast settings (packaged defaults or --config), the receivables,
payables, manual entries, overheads and currency rates from a sources
YAML file, and prints the summary cards, the monthly forecast, the
dropped/flagged records, and optionally the audit view for one job.

Usage:
    python3 scripts/forecast_report.py scripts/sample_sources.yaml
    python3 scripts/forecast_report.py sources.yaml --as-of 2025-01-15
    python3 scripts/forecast_report.py sources.yaml --job JOB-101
    python3 scripts/forecast_report.py sources.yaml --json
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _json_default(obj):
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Not JSON serializable: {type(obj).__name__}")


def _money(amount: Decimal, currency: str) -> str:
    from cashflow_kernel.domain.currency import CurrencyRegistry

    return f"{CurrencyRegistry.quantize(amount, currency):>16,} {currency}"


def projection_to_dict(projection) -> dict:
    snap = projection.snapshot
    return {
        "as_of": projection.as_of,
        "base_currency": projection.base_currency,
        "rate_table_stale": projection.rate_table_stale,
        "snapshot": {
            "week_in": snap.week_in,
            "week_out": snap.week_out,
            "month_in": snap.month_in,
            "month_out": snap.month_out,
        },
        "forecast": [
            {
                "month": b.month_label,
                "inflow": b.inflow_total,
                "outflow": b.outflow_total,
                "running_balance": b.running_balance,
            }
            for b in projection.forecast
        ],
        "events": [
            {
                "id": e.id,
                "date": e.date,
                "direction": e.direction,
                "source": e.source_kind,
                "description": e.description,
                "amount_base": e.amount_base,
                "currency_flagged": e.currency_flagged,
            }
            for e in projection.timeline
        ],
        "issues": [
            {
                "code": i.code,
                "source": i.source_kind,
                "record_id": i.record_id,
                "detail": i.detail,
                "dropped": i.dropped,
            }
            for i in projection.timeline.issues
        ],
    }


def print_projection(projection) -> None:
    base = projection.base_currency
    snap = projection.snapshot

    print()
    print(f"  CASH-FLOW PROJECTION as of {projection.as_of.isoformat()} ({base})")
    if projection.rate_table_stale:
        print("  WARNING: currency rate table is stale")
    print()
    print(f"  This week   in  {_money(snap.week_in, base)}")
    print(f"              out {_money(snap.week_out, base)}")
    print(f"  This month  in  {_money(snap.month_in, base)}")
    print(f"              out {_money(snap.month_out, base)}")

    print()
    print(f"  {'Month':<10}{'Inflow':>22}{'Outflow':>22}{'Balance':>22}")
    print("  " + "-" * 76)
    for b in projection.forecast:
        print(
            f"  {b.month_label:<10}{_money(b.inflow_total, base):>22}"
            f"{_money(b.outflow_total, base):>22}{_money(b.running_balance, base):>22}"
        )

    if projection.timeline.issues:
        print()
        print("  Records needing attention:")
        for issue in projection.timeline.issues:
            status = "dropped" if issue.dropped else "kept"
            print(
                f"    [{issue.code}] {issue.source_kind.value} {issue.record_id} "
                f"({status}): {issue.detail}"
            )
    print()


def print_audit(service, job: str) -> None:
    base = service.settings.base_currency
    print(f"  AUDIT: {job}")
    for title, lines in (
        ("Receivables", service.audit_receivables(job)),
        ("Payables", service.audit_payables(job)),
    ):
        print(f"  {title}:")
        if not lines:
            print("    (none)")
        for line in lines:
            amount = "unresolved" if line.amount_base is None else _money(line.amount_base, base)
            due = line.due_date.isoformat() if line.due_date else "no due date"
            print(
                f"    {line.record_id:<12}{line.job_reference:<12}{line.counterparty:<24}"
                f"{line.original_amount} {line.currency or '?'} -> {amount}  due {due}"
            )
    print()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Cash-flow projection for a sources YAML file.",
    )
    parser.add_argument("sources", type=Path, help="Sources YAML file")
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file")
    parser.add_argument("--as-of", type=str, default=None, help="Reference date YYYY-MM-DD")
    parser.add_argument("--job", type=str, default=None, help="Print the audit view for a job ('All' for every job)")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    parser.add_argument("--verbose", action="store_true", help="Structured logs to stderr")
    args = parser.parse_args()

    from cashflow_config import get_active_config, load_sources
    from cashflow_kernel.domain.clock import DeterministicClock, SystemClock
    from cashflow_kernel.exceptions import CashFlowKernelError
    from cashflow_kernel.logging_config import configure_logging
    from cashflow_modules.finance import FinanceLedgerService

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        logging.disable(logging.CRITICAL)

    clock = SystemClock()
    if args.as_of:
        try:
            as_of = date.fromisoformat(args.as_of)
        except ValueError:
            print(f"  ERROR: --as-of must be YYYY-MM-DD, got {args.as_of!r}", file=sys.stderr)
            return 2
        clock = DeterministicClock(
            datetime(as_of.year, as_of.month, as_of.day, 12, tzinfo=timezone.utc)
        )

    try:
        settings = get_active_config(args.config)
        sources, rate_table = load_sources(args.sources, settings.base_currency)
        service = FinanceLedgerService(settings, rate_table, clock)
        service.import_sources(sources)
        projection = service.project()
    except (OSError, CashFlowKernelError, KeyError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(projection_to_dict(projection), default=_json_default, indent=2))
        return 0

    print_projection(projection)
    if args.job:
        print_audit(service, args.job)
    return 0


if __name__ == "__main__":
    sys.exit(main())
