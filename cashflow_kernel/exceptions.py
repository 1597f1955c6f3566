"""
Typed Exception Hierarchy for the Cash-Flow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type, not by message text.  Every class carries a
machine-readable ``code`` and structured attributes so the same failure can
be logged, reported as a forecast issue, or returned from an API without
parsing strings.

    try:
        service.record_manual_entry(...)
    except InvalidManualEntryError as e:
        form.show_error(e.field_name, e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from CashFlowKernelError:

    CashFlowKernelError (base)
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- UnknownCurrencyError
    |   +-- InvalidExchangeRateError
    |
    +-- SourceRecordError
    |   +-- MissingRequiredFieldError
    |   +-- UnresolvableDateError
    |   +-- DuplicateRecordError
    |   +-- RecordNotFoundError
    |
    +-- ManualEntryError
    |   +-- InvalidManualEntryError
    |
    +-- ConfigurationError
        +-- InvalidSettingError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised / Reported
----------------|-----------------------------|-----------------------------------------
Currency        | INVALID_CURRENCY            | Not a valid ISO 4217 code
                | UNKNOWN_CURRENCY            | Currency missing from the rate table
                | INVALID_EXCHANGE_RATE       | Rate is zero, negative or not a number
----------------|-----------------------------|-----------------------------------------
Source record   | MISSING_REQUIRED_FIELD      | Amount or date absent on a record
                | UNRESOLVABLE_DATE           | Date present but not parseable
                | DUPLICATE_RECORD            | Record id already held
                | RECORD_NOT_FOUND            | Record id not held
----------------|-----------------------------|-----------------------------------------
Manual entry    | INVALID_MANUAL_ENTRY        | Operator entry rejected at entry time
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_SETTING             | Setting value out of range / unknown

The engine itself never raises for degraded data.  MISSING_REQUIRED_FIELD,
UNRESOLVABLE_DATE and UNKNOWN_CURRENCY are reported as ``ForecastIssue``
records carrying these codes; the exception classes exist so that callers
who want strict behavior can raise them from an issue
(see ``ForecastIssue.to_exception``).
"""


class CashFlowKernelError(Exception):
    """
    Base exception for all cash-flow kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CASHFLOW_KERNEL_ERROR"


# Currency-related exceptions


class CurrencyError(CashFlowKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Invalid ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class UnknownCurrencyError(CurrencyError):
    """Currency is valid but has no rate in the active rate table."""

    code: str = "UNKNOWN_CURRENCY"

    def __init__(self, currency: str, base_currency: str):
        self.currency = currency
        self.base_currency = base_currency
        super().__init__(
            f"No {currency}/{base_currency} rate in the active rate table"
        )


class InvalidExchangeRateError(CurrencyError):
    """Exchange rate is zero, negative, or not a decimal number."""

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, currency: str, rate: object):
        self.currency = currency
        self.rate = str(rate)
        super().__init__(f"Invalid exchange rate for {currency}: {rate}")


# Source-record exceptions


class SourceRecordError(CashFlowKernelError):
    """Base exception for problems with a source record."""

    code: str = "SOURCE_RECORD_ERROR"


class MissingRequiredFieldError(SourceRecordError):
    """A record lacks a field needed to place it on the timeline."""

    code: str = "MISSING_REQUIRED_FIELD"

    def __init__(self, record_id: str, field_name: str):
        self.record_id = record_id
        self.field_name = field_name
        super().__init__(f"Record {record_id} is missing {field_name}")


class UnresolvableDateError(SourceRecordError):
    """A record carries a date value that cannot be parsed."""

    code: str = "UNRESOLVABLE_DATE"

    def __init__(self, record_id: str, field_name: str, value: object):
        self.record_id = record_id
        self.field_name = field_name
        self.value = str(value)
        super().__init__(
            f"Record {record_id} has unresolvable {field_name}: {value!r}"
        )


class DuplicateRecordError(SourceRecordError):
    """A record with the same id is already held."""

    code: str = "DUPLICATE_RECORD"

    def __init__(self, record_kind: str, record_id: str):
        self.record_kind = record_kind
        self.record_id = record_id
        super().__init__(f"{record_kind} {record_id} already exists")


class RecordNotFoundError(SourceRecordError):
    """No record with the given id is held."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_kind: str, record_id: str):
        self.record_kind = record_kind
        self.record_id = record_id
        super().__init__(f"{record_kind} {record_id} not found")


# Manual-entry exceptions


class ManualEntryError(CashFlowKernelError):
    """Base exception for operator-entered ledger entries."""

    code: str = "MANUAL_ENTRY_ERROR"


class InvalidManualEntryError(ManualEntryError):
    """Manual entry rejected at the point of entry."""

    code: str = "INVALID_MANUAL_ENTRY"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid manual entry ({field_name}): {reason}")


# Configuration exceptions


class ConfigurationError(CashFlowKernelError):
    """Base exception for forecast configuration problems."""

    code: str = "CONFIGURATION_ERROR"


class InvalidSettingError(ConfigurationError):
    """A forecast setting has an invalid value."""

    code: str = "INVALID_SETTING"

    def __init__(self, setting: str, value: object, reason: str):
        self.setting = setting
        self.value = str(value)
        self.reason = reason
        super().__init__(f"Invalid setting {setting}={value!r}: {reason}")
