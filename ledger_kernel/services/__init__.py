"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_service import AccountSeed, AccountService
from ledger_kernel.services.currency_service import CurrencyService
from ledger_kernel.services.event_publisher import (
    EventBus,
    EventPublisher,
    TransactionalEventPublisher,
)
from ledger_kernel.services.fiscal_calendar_service import FiscalCalendarService
from ledger_kernel.services.journal_entry_service import JournalEntryService
from ledger_kernel.services.rate_service import ExchangeRateTableProvider, RateProvider
from ledger_kernel.services.sequence_service import (
    EntryNumberAllocator,
    SequenceEntryNumberAllocator,
    SequenceService,
)

__all__ = [
    "AccountSeed",
    "AccountService",
    "CurrencyService",
    "EntryNumberAllocator",
    "EventBus",
    "EventPublisher",
    "ExchangeRateTableProvider",
    "FiscalCalendarService",
    "JournalEntryService",
    "RateProvider",
    "SequenceEntryNumberAllocator",
    "SequenceService",
    "TransactionalEventPublisher",
]
