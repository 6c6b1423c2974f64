"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.ledger_selector import (
    AccountTotals,
    EntryTotals,
    GeneralLedger,
    LedgerLine,
    LedgerSelector,
)

__all__ = [
    "LedgerSelector",
    "AccountTotals",
    "EntryTotals",
    "GeneralLedger",
    "LedgerLine",
]
