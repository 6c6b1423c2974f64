"""
Ledger Kernel - multi-tenant general ledger

A double-entry journal engine with:
- Draft -> posted state machine with row-locked posting
- Tenant-scoped chart of accounts, currencies and fiscal calendar
- Base-currency balance validation within a named tolerance
- Derived (never stored) account balances
"""

__version__ = "0.1.0"
