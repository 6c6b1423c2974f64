"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.currency import Currency, ExchangeRate
from ledger_kernel.models.fiscal import FiscalPeriod, FiscalYear
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.models.sequence import SequenceCounter

__all__ = [
    "Account",
    "Currency",
    "ExchangeRate",
    "FiscalYear",
    "FiscalPeriod",
    "JournalEntry",
    "JournalEntryLine",
    "SequenceCounter",
]
