"""Finance module: the ledger workspace behind the forecasting screens."""

from cashflow_modules.finance.models import ALL_JOBS, AuditLine
from cashflow_modules.finance.service import FinanceLedgerService

__all__ = ["ALL_JOBS", "AuditLine", "FinanceLedgerService"]
