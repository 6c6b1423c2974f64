"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection the ledger produces must be visible to the caller and
distinguishable by type, not by parsing message text:

    try:
        journal.post(tenant_id, entry_id, actor_id=user)
    except PeriodLockedError as e:
        api_response(code=e.code, period=e.period_code)

Each class carries a machine-readable ``code`` class attribute and stores its
context as instance attributes (these survive logging and serialization; the
structured formatter copies them into ``exc_*`` fields).

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- LedgerValidationError          caller-fixable input problems
    |   +-- InsufficientLinesError
    |   +-- UnbalancedLineError
    |   +-- ImbalancedEntryError
    |   +-- NoPeriodFoundError
    |   +-- PeriodOutOfRangeError
    |   +-- PeriodOverlapError
    |   +-- DuplicateCodeError
    |   +-- CrossTenantReferenceError
    |   +-- InvalidHierarchyError
    |   +-- InvalidDateRangeError
    |   +-- AccountInactiveError
    |   +-- CurrencyInactiveError
    |   +-- NoBaseCurrencyError
    |   +-- InvalidCurrencyError
    |   +-- EntityNotFoundError
    |       +-- AccountNotFoundError
    |       +-- CurrencyNotFoundError
    |       +-- FiscalYearNotFoundError
    |       +-- FiscalPeriodNotFoundError
    |       +-- JournalEntryNotFoundError
    |
    +-- LedgerStateError               illegal transition attempted
    |   +-- EntryAlreadyPostedError
    |   +-- PeriodLockedError
    |   +-- FiscalYearClosedError
    |   +-- EntryNotPostedError
    |   +-- EntryAlreadyReversedError
    |   +-- AccountReferencedError
    |   +-- BaseCurrencyRequiredError
    |
    +-- LedgerIntegrityError           should never happen; indicates a bug
    |   +-- LedgerOutOfBalanceError
    |   +-- MultipleBaseCurrenciesError
    |   +-- AmbiguousPeriodError
    |   +-- ImmutabilityViolationError
    |
    +-- ExternalDependencyError        collaborator failures, never retried here
        +-- RateUnavailableError
        +-- NumberingError

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError: domain errors are catchable as a
   group without mixing in programming errors.
2. ``code`` is a class attribute: static per type, usable without an instance.
3. Categories map onto handling policy: validation -> 4xx-style response,
   state -> caller bug or fairly-lost race, integrity -> alert,
   external -> caller decides on retry.
"""

from datetime import date
from decimal import Decimal


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# =============================================================================
# Validation errors
# =============================================================================


class LedgerValidationError(LedgerKernelError):
    """Base exception for caller-fixable validation failures."""

    code: str = "VALIDATION_ERROR"


class InsufficientLinesError(LedgerValidationError):
    """A journal entry needs at least two lines."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, line_count: int, minimum: int = 2):
        self.line_count = line_count
        self.minimum = minimum
        super().__init__(
            f"Journal entry has {line_count} line(s); at least {minimum} required"
        )


class UnbalancedLineError(LedgerValidationError):
    """
    A single line is not exactly one of debit or credit.

    Exactly one of ``debit`` / ``credit`` must be strictly positive and the
    other zero.  ``line_index`` is the zero-based position in the submitted
    line list.
    """

    code: str = "UNBALANCED_LINE"

    def __init__(self, line_index: int, debit: Decimal, credit: Decimal, reason: str):
        self.line_index = line_index
        self.debit = debit
        self.credit = credit
        self.reason = reason
        super().__init__(
            f"Line {line_index} is invalid (debit={debit}, credit={credit}): {reason}"
        )


class ImbalancedEntryError(LedgerValidationError):
    """Total debits and credits differ by more than the balance tolerance."""

    code: str = "IMBALANCED_ENTRY"

    def __init__(
        self,
        total_debits: Decimal,
        total_credits: Decimal,
        tolerance: Decimal,
        entry_id: str | None = None,
    ):
        self.total_debits = total_debits
        self.total_credits = total_credits
        self.tolerance = tolerance
        self.entry_id = entry_id
        super().__init__(
            f"Journal entry is not balanced: debits={total_debits}, "
            f"credits={total_credits} (tolerance {tolerance})"
        )


class NoPeriodFoundError(LedgerValidationError):
    """No fiscal period contains the given date."""

    code: str = "NO_PERIOD_FOUND"

    def __init__(self, tenant_id: str, entry_date: date):
        self.tenant_id = tenant_id
        self.entry_date = entry_date
        super().__init__(f"No fiscal period found for date {entry_date}")


class PeriodOutOfRangeError(LedgerValidationError):
    """A date range or date does not lie within its container's bounds."""

    code: str = "PERIOD_OUT_OF_RANGE"

    def __init__(
        self,
        subject: str,
        start_date: date,
        end_date: date,
        bounds_start: date,
        bounds_end: date,
    ):
        self.subject = subject
        self.start_date = start_date
        self.end_date = end_date
        self.bounds_start = bounds_start
        self.bounds_end = bounds_end
        super().__init__(
            f"{subject} ({start_date} to {end_date}) is outside "
            f"{bounds_start} to {bounds_end}"
        )


class PeriodOverlapError(LedgerValidationError):
    """New fiscal year or period overlaps an existing one."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        new_name: str,
        existing_name: str,
        overlap_start: date,
        overlap_end: date,
    ):
        self.new_name = new_name
        self.existing_name = existing_name
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"{new_name} overlaps with {existing_name} "
            f"({overlap_start} to {overlap_end})"
        )


class DuplicateCodeError(LedgerValidationError):
    """A code that must be unique per tenant already exists."""

    code: str = "DUPLICATE_CODE"

    def __init__(self, entity_type: str, duplicate_code: str, tenant_id: str):
        self.entity_type = entity_type
        self.duplicate_code = duplicate_code
        self.tenant_id = tenant_id
        super().__init__(
            f"{entity_type} code '{duplicate_code}' already exists for tenant {tenant_id}"
        )


class CrossTenantReferenceError(LedgerValidationError):
    """A referenced record belongs to a different tenant."""

    code: str = "CROSS_TENANT_REFERENCE"

    def __init__(self, entity_type: str, entity_id: str, tenant_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.tenant_id = tenant_id
        super().__init__(
            f"{entity_type} {entity_id} does not belong to tenant {tenant_id}"
        )


class InvalidHierarchyError(LedgerValidationError):
    """Parent assignment would cross tenants or create a cycle."""

    code: str = "INVALID_HIERARCHY"

    def __init__(self, account_id: str | None, parent_id: str, reason: str):
        self.account_id = account_id
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(
            f"Invalid parent {parent_id} for account {account_id}: {reason}"
        )


class InvalidDateRangeError(LedgerValidationError):
    """Start date is after end date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"start_date ({start_date}) cannot be after end_date ({end_date})"
        )


class AccountInactiveError(LedgerValidationError):
    """Lines may only reference active accounts."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str, account_code: str):
        self.account_id = account_id
        self.account_code = account_code
        super().__init__(f"Account {account_code} ({account_id}) is inactive")


class CurrencyInactiveError(LedgerValidationError):
    """Lines may only reference active currencies."""

    code: str = "CURRENCY_INACTIVE"

    def __init__(self, currency_id: str, currency_code: str):
        self.currency_id = currency_id
        self.currency_code = currency_code
        super().__init__(f"Currency {currency_code} ({currency_id}) is inactive")


class NoBaseCurrencyError(LedgerValidationError):
    """Tenant has no base currency configured."""

    code: str = "NO_BASE_CURRENCY"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id} has no base currency")


class InvalidCurrencyError(LedgerValidationError):
    """Currency code is not a recognized ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class EntityNotFoundError(LedgerValidationError):
    """Base for lookups that found nothing."""

    code: str = "NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class AccountNotFoundError(EntityNotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    entity_type: str = "Account"


class CurrencyNotFoundError(EntityNotFoundError):
    code: str = "CURRENCY_NOT_FOUND"
    entity_type: str = "Currency"


class FiscalYearNotFoundError(EntityNotFoundError):
    code: str = "FISCAL_YEAR_NOT_FOUND"
    entity_type: str = "FiscalYear"


class FiscalPeriodNotFoundError(EntityNotFoundError):
    code: str = "FISCAL_PERIOD_NOT_FOUND"
    entity_type: str = "FiscalPeriod"


class JournalEntryNotFoundError(EntityNotFoundError):
    code: str = "JOURNAL_ENTRY_NOT_FOUND"
    entity_type: str = "JournalEntry"


# =============================================================================
# State errors
# =============================================================================


class LedgerStateError(LedgerKernelError):
    """Base exception for illegal state transitions."""

    code: str = "STATE_ERROR"


class EntryAlreadyPostedError(LedgerStateError):
    """
    Operation requires a draft entry but the entry is posted.

    Raised by update, delete, and a second post.  Posting twice is an
    error, never a silent success.
    """

    code: str = "ENTRY_ALREADY_POSTED"

    def __init__(self, entry_id: str, entry_number: str, operation: str):
        self.entry_id = entry_id
        self.entry_number = entry_number
        self.operation = operation
        super().__init__(
            f"Cannot {operation} journal entry {entry_number}: already posted"
        )


class PeriodLockedError(LedgerStateError):
    """The targeted fiscal period is locked."""

    code: str = "PERIOD_LOCKED"

    def __init__(self, period_id: str, period_code: str, operation: str):
        self.period_id = period_id
        self.period_code = period_code
        self.operation = operation
        super().__init__(
            f"Cannot {operation} in locked fiscal period {period_code}"
        )


class FiscalYearClosedError(LedgerStateError):
    """The targeted fiscal year is closed."""

    code: str = "FISCAL_YEAR_CLOSED"

    def __init__(self, fiscal_year_id: str, fiscal_year_name: str, operation: str):
        self.fiscal_year_id = fiscal_year_id
        self.fiscal_year_name = fiscal_year_name
        self.operation = operation
        super().__init__(
            f"Cannot {operation} in closed fiscal year {fiscal_year_name}"
        )


class EntryNotPostedError(LedgerStateError):
    """Only posted entries can be reversed."""

    code: str = "ENTRY_NOT_POSTED"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(
            f"Cannot reverse entry {entry_id}: status is {status}, not posted"
        )


class EntryAlreadyReversedError(LedgerStateError):
    """Entry already has a reversing entry."""

    code: str = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: str, reversal_entry_id: str):
        self.entry_id = entry_id
        self.reversal_entry_id = reversal_entry_id
        super().__init__(
            f"Entry {entry_id} already reversed by {reversal_entry_id}"
        )


class AccountReferencedError(LedgerStateError):
    """Account is referenced by journal lines and cannot be deleted."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} is referenced by journal lines; deactivate it instead"
        )


class BaseCurrencyRequiredError(LedgerStateError):
    """The base currency cannot be deactivated or demoted without a replacement."""

    code: str = "BASE_CURRENCY_REQUIRED"

    def __init__(self, currency_id: str, operation: str):
        self.currency_id = currency_id
        self.operation = operation
        super().__init__(f"Cannot {operation} the base currency {currency_id}")


# =============================================================================
# Integrity errors
# =============================================================================


class LedgerIntegrityError(LedgerKernelError):
    """Base exception for conditions that indicate a bug or tampering."""

    code: str = "INTEGRITY_ERROR"


class LedgerOutOfBalanceError(LedgerIntegrityError):
    """Posted entries found unbalanced at report time."""

    code: str = "LEDGER_OUT_OF_BALANCE"

    def __init__(self, tenant_id: str, entry_numbers: list[str]):
        self.tenant_id = tenant_id
        self.entry_numbers = entry_numbers
        super().__init__(
            f"Posted entries out of balance for tenant {tenant_id}: "
            f"{', '.join(entry_numbers)}"
        )


class MultipleBaseCurrenciesError(LedgerIntegrityError):
    """More than one base currency flagged for a tenant."""

    code: str = "MULTIPLE_BASE_CURRENCIES"

    def __init__(self, tenant_id: str, currency_codes: list[str]):
        self.tenant_id = tenant_id
        self.currency_codes = currency_codes
        super().__init__(
            f"Tenant {tenant_id} has multiple base currencies: "
            f"{', '.join(currency_codes)}"
        )


class AmbiguousPeriodError(LedgerIntegrityError):
    """More than one fiscal period contains a date."""

    code: str = "AMBIGUOUS_PERIOD"

    def __init__(self, entry_date: date, period_codes: list[str]):
        self.entry_date = entry_date
        self.period_codes = period_codes
        super().__init__(
            f"Date {entry_date} falls in multiple periods: {', '.join(period_codes)}"
        )


class ImmutabilityViolationError(LedgerIntegrityError):
    """Attempted to modify or delete a posted entry or its lines."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# =============================================================================
# External dependency errors
# =============================================================================


class ExternalDependencyError(LedgerKernelError):
    """Base exception for failures of injected collaborators."""

    code: str = "EXTERNAL_DEPENDENCY_ERROR"


class RateUnavailableError(ExternalDependencyError):
    """No exchange rate is available for a currency on a date."""

    code: str = "RATE_UNAVAILABLE"

    def __init__(self, currency_id: str, as_of: date, currency_code: str | None = None):
        self.currency_id = currency_id
        self.as_of = as_of
        self.currency_code = currency_code
        label = currency_code or currency_id
        super().__init__(f"No exchange rate for {label} on or before {as_of}")


class NumberingError(ExternalDependencyError):
    """The entry numbering collaborator failed to allocate a number."""

    code: str = "NUMBERING_FAILED"

    def __init__(self, tenant_id: str, reason: str):
        self.tenant_id = tenant_id
        self.reason = reason
        super().__init__(f"Entry number allocation failed for tenant {tenant_id}: {reason}")
