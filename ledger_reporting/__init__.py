"""
Ledger Reporting (``ledger_reporting``).

Responsibility
--------------
Read-only projection that derives reports from posted journal lines:
trial balance, period trial balance, general ledger, profit and loss, and
balance sheet, plus ledger integrity verification.

Architecture position
---------------------
**Reporting layer** -- above the kernel.  Reads through
``ledger_kernel.selectors``; never writes.

Invariants enforced
-------------------
* Drafts are invisible to every report.
* Every report is recomputable from posted lines; none is a source of
  truth.
"""

from ledger_reporting.config import AccountClassification, ReportingConfig
from ledger_reporting.models import (
    AccountBalanceReport,
    BalanceSheetReport,
    PeriodTrialBalanceLineItem,
    PeriodTrialBalanceReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)
from ledger_reporting.service import ReportingService

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    "AccountClassification",
    # Models
    "ReportType",
    "ReportMetadata",
    "TrialBalanceLineItem",
    "TrialBalanceReport",
    "PeriodTrialBalanceLineItem",
    "PeriodTrialBalanceReport",
    "StatementSection",
    "ProfitAndLossReport",
    "BalanceSheetReport",
    "AccountBalanceReport",
]
