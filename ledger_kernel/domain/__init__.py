"""
Pure functional core of the ledger kernel.

Nothing in this package performs I/O: no sessions, no queries, no clocks
other than the injected Clock abstraction.
"""

from ledger_kernel.domain.balance import (
    BALANCE_TOLERANCE,
    assert_balanced,
    balance_tolerance,
    validate_entry_lines,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    UNSET,
    AccountInfo,
    CurrencyInfo,
    DraftPatch,
    FiscalPeriodInfo,
    FiscalYearInfo,
    JournalEntryRecord,
    JournalLineRecord,
    LineInput,
)
from ledger_kernel.domain.events import JournalEntryPosted
from ledger_kernel.domain.references import (
    DepreciationRef,
    EntryReference,
    ManualRef,
    PaymentRef,
    PayrollRef,
    PurchaseInvoiceRef,
    ReferenceKind,
    ReversalRef,
    SalesInvoiceRef,
)
from ledger_kernel.domain.resolution import resolve_base_currency, resolve_period
from ledger_kernel.domain.values import (
    AccountType,
    EntryStatus,
    NormalBalance,
    is_credit_normal,
    is_debit_normal,
    normal_balance_for,
)

__all__ = [
    "BALANCE_TOLERANCE",
    "balance_tolerance",
    "assert_balanced",
    "validate_entry_lines",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "UNSET",
    "LineInput",
    "DraftPatch",
    "AccountInfo",
    "CurrencyInfo",
    "FiscalYearInfo",
    "FiscalPeriodInfo",
    "JournalLineRecord",
    "JournalEntryRecord",
    "JournalEntryPosted",
    "EntryReference",
    "ReferenceKind",
    "SalesInvoiceRef",
    "PurchaseInvoiceRef",
    "PaymentRef",
    "ManualRef",
    "DepreciationRef",
    "PayrollRef",
    "ReversalRef",
    "resolve_period",
    "resolve_base_currency",
    "AccountType",
    "NormalBalance",
    "EntryStatus",
    "normal_balance_for",
    "is_debit_normal",
    "is_credit_normal",
]
