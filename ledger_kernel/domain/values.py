"""
Module: ledger_kernel.domain.values
Responsibility: Enumerations shared by the ORM, the functional core, and
    reporting: account types, the normal-balance side, and entry status.
    Also the normal-balance functions used to sign balances for reporting.
Architecture position: Kernel > Domain.  Pure.  ZERO I/O.

Invariants enforced:
    - Account type determines normal balance: asset/expense are debit-normal;
      liability/equity/revenue are credit-normal.
    - Entry status transitions once, draft -> posted.  There is no other
      state.
"""

from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class EntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: draft -> posted, once, irreversibly.  Correction of a posted
    entry is a new reversing entry, never a status change.
    """

    DRAFT = "draft"
    POSTED = "posted"


_DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """Return the natural balance side of an account type."""
    if AccountType(account_type) in _DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def is_debit_normal(account_type: AccountType | str) -> bool:
    return normal_balance_for(account_type) == NormalBalance.DEBIT


def is_credit_normal(account_type: AccountType | str) -> bool:
    return normal_balance_for(account_type) == NormalBalance.CREDIT


def signed_balance(
    account_type: AccountType | str,
    debit_total: Decimal,
    credit_total: Decimal,
) -> Decimal:
    """
    Net balance presented on the account's natural side.

    Positive means the account carries a balance on its normal side
    (e.g. a debit balance on Cash, a credit balance on Revenue).
    """
    if is_debit_normal(account_type):
        return debit_total - credit_total
    return credit_total - debit_total
