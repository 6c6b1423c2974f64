"""
Financial Reporting Models (``ledger_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: trial
balance, period trial balance, profit and loss, balance sheet, and single
account balances.

Architecture position
---------------------
**Reporting layer** -- pure data definitions with ZERO I/O.  Built by
``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` in the tenant base currency.

Audit relevance
---------------
* ``ReportMetadata`` carries the generation timestamp and parameters so a
  report can be reproduced from the posted journal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ReportType(str, Enum):
    """Types of ledger reports."""

    TRIAL_BALANCE = "trial_balance"
    PERIOD_TRIAL_BALANCE = "period_trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    ACCOUNT_BALANCE = "account_balance"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    tenant_id: UUID
    entity_name: str
    currency: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """One account of the trial balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal  # Natural-side balance

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in ("asset", "expense")


@dataclass(frozen=True)
class TrialBalanceReport:
    """
    Trial balance as of a date.

    ``total_debits == total_credits`` and
    ``debit_normal_total == credit_normal_total`` both hold whenever every
    posted entry balances.
    """

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: Decimal
    total_credits: Decimal
    debit_normal_total: Decimal
    credit_normal_total: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class PeriodTrialBalanceLineItem:
    """Opening, period activity, and ending balance of one account."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    opening_balance: Decimal
    period_debits: Decimal
    period_credits: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class PeriodTrialBalanceReport:
    metadata: ReportMetadata
    fiscal_period_id: UUID
    period_code: str
    lines: tuple[PeriodTrialBalanceLineItem, ...]
    total_period_debits: Decimal
    total_period_credits: Decimal
    is_balanced: bool


# =========================================================================
# Profit and Loss
# =========================================================================


@dataclass(frozen=True)
class StatementSection:
    """A section of a statement (e.g. Revenue, Liabilities)."""

    label: str
    lines: tuple[TrialBalanceLineItem, ...]
    total: Decimal


@dataclass(frozen=True)
class ProfitAndLossReport:
    """
    Profit and loss over a date range.

    Revenue - Cost of Goods Sold = Gross Profit
    Gross Profit - Operating Expenses = Net Income
    """

    metadata: ReportMetadata
    revenue: StatementSection
    cost_of_goods_sold: StatementSection
    operating_expenses: StatementSection
    gross_profit: Decimal
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of a date.

    Assets = Liabilities + Equity, where equity includes the unclosed
    revenue and expense balances as a synthetic earnings line.
    ``difference`` is reported rather than forced to zero.
    """

    metadata: ReportMetadata
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    retained_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    difference: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class AccountBalanceReport:
    metadata: ReportMetadata
    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal
